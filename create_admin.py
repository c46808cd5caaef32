#!/usr/bin/env python3
"""
One-time script to create an approved admin user
Usage: python create_admin.py

Non-interactive mode for deployments:
  Provide these environment variables (or put them in .env) and run once:
    ADMIN_EMPLOYEE_ID
    ADMIN_NAME
    ADMIN_PASSWORD

If any of them are missing the script prompts for the rest when attached to
a terminal, and exits with status 1 otherwise.
"""
import os
import sys
from dotenv import load_dotenv
from safewatch.db import SessionLocal, create_tables, unit_of_work
from safewatch.models.user import User, UserRole
from safewatch.core.errors import SafeWatchError
from safewatch.core.security import get_password_hash

ADMIN_FIELDS = ("ADMIN_EMPLOYEE_ID", "ADMIN_NAME", "ADMIN_PASSWORD")


def create_admin_user():
    """Create the initial admin user"""
    load_dotenv()
    create_tables()

    db = SessionLocal()
    try:
        existing_admin = db.query(User).filter(User.role == UserRole.ADMIN).first()
        if existing_admin:
            print(f"Admin user already exists: {existing_admin.employee_id}")
            return

        employee_id, name, password = (os.getenv(key, "").strip() for key in ADMIN_FIELDS)

        if not all([employee_id, name, password]) and not sys.stdin.isatty():
            print("Admin seeding (non-interactive) - env var status:")
            for key in ADMIN_FIELDS:
                print(f"  {key}: {'<set>' if os.getenv(key, '').strip() else '<missing>'}")
            print("One or more admin environment variables are missing. Aborting without prompts.")
            sys.exit(1)

        if not all([employee_id, name, password]):
            employee_id = employee_id or input("Admin employee ID: ").strip()
            name = name or input("Admin name: ").strip()
            password = password or input("Admin password: ").strip()

        if not all([employee_id, name, password]):
            print("All fields are required!")
            return

        taken = db.query(User).filter(User.employee_id == employee_id).first()
        if taken:
            print(f"Employee ID {employee_id} is already registered")
            return

        admin_user = User(
            employee_id=employee_id,
            name=name,
            role=UserRole.ADMIN,
            password_hash=get_password_hash(password),
            approved=True,
            points=0,
            level="Bronze",
        )
        with unit_of_work(db):
            db.add(admin_user)
        db.refresh(admin_user)

        print("Admin user created successfully!")
        print(f"ID: {admin_user.id}")
        print(f"Employee ID: {admin_user.employee_id}")
        print(f"Name: {admin_user.name}")
        print(f"Role: {admin_user.role.value}")

    except SafeWatchError as e:
        print(f"Error creating admin user: {e.message}")
    finally:
        db.close()


if __name__ == "__main__":
    create_admin_user()
