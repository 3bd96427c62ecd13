#!/usr/bin/env python3
"""
Database initialization script for the Course Completion Report application
Run this script to set up the database, optionally resetting it or adding demo data

Usage:
  python init_db.py
  python init_db.py --reset --yes
  python init_db.py --sample-data
"""

import argparse
import logging

from app import create_app
from config import Config
from database import reset_database
from models.academic import Course
from sample_data import create_sample_data

def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Initialize the completion report database")
    parser.add_argument('--reset', action='store_true', help='Drop and recreate every table')
    parser.add_argument('--yes', action='store_true', help='Do not ask for confirmation before a reset')
    parser.add_argument('--sample-data', action='store_true', help='Add the demonstration course')
    return parser.parse_args(argv)

def main(argv=None, config_class=Config):
    """Main function to initialize database"""
    args = parse_args(argv)
    # create_app creates missing tables and the default administrator
    app = create_app(config_class)

    if args.reset:
        print("WARNING: This will delete all existing data!")
        if not args.yes:
            confirm = input("Are you sure you want to reset the database? (yes/no): ")
            if confirm.lower() != 'yes':
                print("Database reset cancelled.")
                return app
        reset_database(app)

    if args.sample_data:
        with app.app_context():
            if Course.query.filter_by(shortname='DS101').first():
                print("Sample data already exists")
            else:
                create_sample_data()
                print("Sample data created")

    return app

if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    main()
