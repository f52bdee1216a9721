"""
create_tables.py
----------------
One-shot script to create all database tables and the default tenant.
Use this for quick setup. For production migrations, use Alembic instead.

Optionally creates (or promotes) a ROLE_ADMIN user in the default tenant so
the admin endpoints are reachable on a fresh install.

Usage:
    python create_tables.py
    python create_tables.py --admin-email admin@example.com --admin-password 'S3curePassw0rd'

Environment Variables:
    ADMIN_EMAIL / ADMIN_PASSWORD may be used instead of the flags.
"""

import argparse
import asyncio
import os
import sys

from sqlalchemy import select

from tenant_auth.core.config import get_settings
from tenant_auth.core.scopes import Role
from tenant_auth.core.security import PasswordHasher
from tenant_auth.db.session import build_engine, build_sessionmaker
from tenant_auth.models import Base, User  # Imports all models so metadata is populated
from tenant_auth.services.tenant_service import TenantService


async def create_all_tables(admin_email: str | None, admin_password: str | None) -> None:
    settings = get_settings()
    engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with build_sessionmaker(engine)() as session:
        tenant = await TenantService.ensure_default_tenant(session, settings)
        print(f"Default tenant ready: {tenant.slug} ({tenant.id})")

        if admin_email:
            result = await session.execute(select(User).where(User.email == admin_email))
            user = result.scalar_one_or_none()
            if user is None:
                if not admin_password:
                    raise SystemExit("--admin-password is required to create a new admin")
                user = User(
                    email=admin_email,
                    password=await PasswordHasher(settings.BCRYPT_ROUNDS).hash(admin_password),
                    name="Administrator",
                    tenant_id=tenant.id,
                    enabled=True,
                )
                user.set_roles({Role.ADMIN.value, Role.USER.value})
                session.add(user)
                print(f"Created admin user: {admin_email}")
            else:
                user.set_roles(user.roles | {Role.ADMIN.value})
                print(f"Promoted existing user to admin: {admin_email}")

        await session.commit()
    await engine.dispose()
    print("All tables created successfully.")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Create tables and bootstrap the default tenant",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--admin-email", default=os.environ.get("ADMIN_EMAIL"))
    parser.add_argument("--admin-password", default=os.environ.get("ADMIN_PASSWORD"))
    args = parser.parse_args()

    if args.admin_password and len(args.admin_password) < 8:
        print("Admin password must be at least 8 characters", file=sys.stderr)
        sys.exit(1)

    asyncio.run(create_all_tables(args.admin_email, args.admin_password))


if __name__ == "__main__":
    main()
