"""
Seed Users — default Admin and User accounts.

Usage:
    python scripts/seed_users.py              # Uses development DB
    python scripts/seed_users.py --env production

This script is idempotent — safe to run multiple times.
Equivalent to ``flask --app wsgi seed-users``.
"""

import argparse
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from clirec import create_app
from clirec.models.auth import User
from clirec.services.user_service import DEFAULT_USERS, seed_default_users


def main():
    parser = argparse.ArgumentParser(description="Seed default Admin and User accounts")
    parser.add_argument("--env", default="development", help="App environment")
    args = parser.parse_args()

    os.environ.setdefault("APP_ENV", args.env)
    app = create_app(args.env)

    with app.app_context():
        print("=" * 60)
        print("  SEED: Default users")
        print("=" * 60)

        created = seed_default_users()
        for account in DEFAULT_USERS:
            state = "created" if account["email"] in created else "already exists"
            print(f"  {account['role']:6s} {account['email']:30s} {state}")

        print(f"\n  Users: {User.query.count()}")
        print("\n✅ Seed complete!")


if __name__ == "__main__":
    main()
