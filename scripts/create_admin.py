"""Create an admin account, or promote an existing one.

Usage:
    python scripts/create_admin.py owner@example.com 'password' --name "Owner"
"""
import argparse
import asyncio

from storefront.database import async_session_factory, init_db
from storefront.models.user import UserRole
from storefront.services.auth_service import AuthService


async def create_admin(email: str, password: str, name: str = None) -> None:
    await init_db()

    async with async_session_factory() as db:
        try:
            auth = AuthService(db)
            user = await auth.get_user_by_email(email)
            if user:
                user.role = UserRole.ADMIN.value
                print(f"Promoted existing user {user.email} to ADMIN")
            else:
                user = await auth.register(email, password, name=name, role=UserRole.ADMIN)
                print(f"Created admin {user.email}")
            await db.commit()
        except Exception:
            await db.rollback()
            raise


def main():
    parser = argparse.ArgumentParser(description="Create or promote a storefront admin")
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("--name", default=None)
    args = parser.parse_args()

    asyncio.run(create_admin(args.email, args.password, args.name))


if __name__ == "__main__":
    main()
