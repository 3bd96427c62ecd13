"""
Validation utilities for the Course Completion Report application
"""

import re

REPORT_FORMATS = ('', 'csv', 'excelcsv', 'pdf')
SORT_KEYS = ('', 'firstname', 'lastname')

def validate_username(username):
    """Validate username format"""
    if not username or len(username.strip()) == 0:
        return False, "Username is required"

    if len(username) < 3:
        return False, "Username must be at least 3 characters long"

    if len(username) > 80:
        return False, "Username must be 80 characters or less"

    # Allow alphanumeric, underscore, dot and hyphen
    if not re.match(r'^[A-Za-z0-9_.-]+$', username):
        return False, "Username can only contain letters, numbers, dots, hyphens, and underscores"

    return True, "Valid username"

def validate_report_format(value):
    """Validate the report output format"""
    if (value or '') not in REPORT_FORMATS:
        return False, f"Format must be one of: {', '.join(f or 'html' for f in REPORT_FORMATS)}"
    return True, "Valid format"

def validate_sort(value):
    """Validate the report sort key"""
    if (value or '') not in SORT_KEYS:
        return False, "Sort must be firstname or lastname"
    return True, "Valid sort"

def validate_initial(value):
    """Validate a name initial filter (a single letter, 'all' or empty for all)"""
    if value is None:
        return False, "Initial is required"
    if value == '' or value.lower() == 'all':
        return True, "Valid initial"
    if not re.match(r'^[A-Za-z]$', value):
        return False, "Initial must be a single letter or 'all'"
    return True, "Valid initial"

def normalize_initial(value):
    """Upper-case letter, or 'all'"""
    if not value or value.lower() == 'all':
        return 'all'
    return value.upper()
