#!/usr/bin/env python
"""Seed script to create the first admin user.

Run once during initial setup, after the migrations have been applied
(``cd backend && alembic upgrade head``). The admin can then create reviewer
accounts through the API.

Usage:
    python backend/scripts/seed_admin.py

Environment Variables:
    DATABASE_URL: Database connection string
    PASSWORD_PEPPER: Password hashing pepper (required)
    ADMIN_EMAIL: Email for admin user (default: admin@example.com)
    ADMIN_PASSWORD: Password for admin user (default: AdminPass123)
    ADMIN_NAME: Display name for admin user (default: System Administrator)
"""

import os
import sys

from docreview.auth.password import hash_password, validate_password_strength
from docreview.auth.roles import Role
from docreview.database import get_db_session
from docreview.models import User


def main():
    """Create the initial admin user."""
    admin_email = os.getenv("ADMIN_EMAIL", "admin@example.com")
    admin_password = os.getenv("ADMIN_PASSWORD", "AdminPass123")
    admin_name = os.getenv("ADMIN_NAME", "System Administrator")

    # Validate password strength
    is_valid, error_msg = validate_password_strength(admin_password)
    if not is_valid:
        print(f"ERROR: Password does not meet strength requirements: {error_msg}")
        sys.exit(1)

    try:
        with get_db_session() as session:
            existing_user = session.query(User).filter(
                User.email == admin_email.lower()
            ).first()

            if existing_user:
                print(f"ERROR: User with email {admin_email} already exists")
                sys.exit(1)

            admin_user = User(
                email=admin_email.lower(),
                name=admin_name,
                role=Role.ADMIN.value,
                password_hash=hash_password(admin_password),
                status="ACTIVE"
            )
            session.add(admin_user)
            session.flush()

            print("SUCCESS: Admin user created")
            print(f"  ID:    {admin_user.id}")
            print(f"  Email: {admin_user.email}")
            print(f"  Name:  {admin_user.name}")
            print(f"  Role:  {admin_user.role}")

    except Exception as e:
        print(f"ERROR: Failed to create admin user: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
