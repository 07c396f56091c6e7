from __future__ import annotations

import sys

from sqlalchemy import select

import dogspots.models  # noqa: F401  (registers all tables)
from dogspots.db.base import Base
from dogspots.db.session import SessionLocal, engine
from dogspots.models.enums import UserRole
from dogspots.models.users import User


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 2:
        print("Usage: python scripts/set_role.py <username> <role: user|admin>")
        return 2

    username, role = args
    if role not in {r.value for r in UserRole}:
        print(f"Unknown role: {role}")
        return 2

    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        user = db.scalar(select(User).where(User.username == username))
        if not user:
            print("User not found")
            return 1
        user.role = role
        db.add(user)
        db.commit()
        print(f"Role updated: {username} -> {role}")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
