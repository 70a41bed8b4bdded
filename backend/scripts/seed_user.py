#!/usr/bin/env python
"""
Seed script for creating a demo user with one activity.
Run with: cd backend; python scripts/seed_user.py [username] [password]
Requires DATABASE_URL and SECRET_KEY in .env.
"""

import os
import sys

# Add tracklog to path
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from tracklog.auth import get_password_hash, get_user_by_username
from tracklog.database import SessionLocal
from tracklog.services.activity_service import ActivityService
from tracklog.models.user import User

db = SessionLocal()

def seed_user(username: str = 'demo', password: str = 'changeme'):
    existing = get_user_by_username(db, username)
    if existing:
        print(f"User '{username}' already exists (id={existing.id}). Skipping seed.")
        return

    try:
        user = User(
            username=username,
            full_name='Demo User',
            email=f'{username}@tracklog.local',
            hashed_password=get_password_hash(password),
            is_active=True
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        print(f"Created user '{username}' (id={user.id})")

        activity = ActivityService(db).create(user.id, 'Reading')
        print(f"Created activity '{activity.name}' (id={activity.id})")
    except Exception as e:
        db.rollback()
        print(f"Error seeding user: {e}")
        raise
    finally:
        db.close()

if __name__ == "__main__":
    seed_user(*sys.argv[1:3])
