#!/usr/bin/env python3
"""
Production script to create the initial admin account
Usage: python scripts/create_admin_user.py [email] [password]
"""
import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from ella_rises.database.database import SessionLocal, init_db
from ella_rises.models.participant import Participant, ParticipantRole
from ella_rises.core.security import hash_password

DEFAULT_EMAIL = "admin@ellarises.org"
DEFAULT_PASSWORD = "admin12345"

def create_admin_user(email: str = DEFAULT_EMAIL, password: str = DEFAULT_PASSWORD):
    """Create the admin account, or promote an existing participant with that email."""
    init_db()
    db = SessionLocal()

    try:
        existing = db.query(Participant).filter(Participant.email == email).first()
        if existing and existing.is_admin and not existing.is_visitor:
            print("✅ Admin user already exists")
            return

        if existing:
            existing.role = ParticipantRole.ADMIN
            if existing.is_visitor:
                existing.hashed_password = hash_password(password)
            print(f"✅ Promoted {email} to admin")
        else:
            db.add(Participant(
                email=email,
                first_name="System",
                last_name="Administrator",
                role=ParticipantRole.ADMIN,
                hashed_password=hash_password(password),
            ))
            print("✅ Admin user created successfully!")
            print(f"📧 Email: {email}")
            print(f"🔑 Password: {password}")
            print("⚠️  Please change the password after first login!")
        db.commit()

    except Exception as e:
        print(f"❌ Error creating admin user: {e}")
        db.rollback()
        sys.exit(1)
    finally:
        db.close()

if __name__ == "__main__":
    args = sys.argv[1:]
    create_admin_user(*args[:2])
