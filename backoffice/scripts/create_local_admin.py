"""
Script to bootstrap an admin user with a password for local use.

Every admin operation requires an admin caller, so the first one has to be
created out of band. Prints a session token that can be sent as
``Authorization: Bearer <token>``.
"""

import argparse
import asyncio
from datetime import datetime, timezone

from sqlmodel import select

from backoffice.core.auth import create_session_token, hash_password, verify_password
from backoffice.core.database import get_session_context, init_db
from backoffice.core.ids import new_id
from backoffice.models import CREDENTIAL_PROVIDER, Account, Organization, User


async def create_admin(email: str, password: str, name: str, org_name: str) -> str:
    """Create (or promote) an admin user. Returns a session token for them."""
    await init_db()

    async with get_session_context() as session:
        # 1. Ensure the organization exists
        result = await session.execute(
            select(Organization).where(Organization.name == org_name)
        )
        org = result.scalar_one_or_none()
        if not org:
            org = Organization(id=new_id(), name=org_name)
            session.add(org)
            await session.flush()
            print(f"Created organization: {org_name}")

        # 2. Create the user, or promote an existing one
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        now = datetime.now(timezone.utc)

        if not user:
            user = User(
                id=new_id(),
                name=name,
                email=email,
                email_verified=True,
                org_id=org.id,
                role="admin",
                created_at=now,
                updated_at=now,
            )
            session.add(user)
            await session.flush()
            print(f"Created admin user: {email}")
        elif user.role != "admin":
            user.role = "admin"
            user.updated_at = now
            session.add(user)
            print(f"Promoted {email} to admin.")
        else:
            print(f"User {email} is already an admin.")

        # 3. Ensure a credential account with this password exists
        result = await session.execute(
            select(Account).where(
                Account.user_id == user.id,
                Account.provider_id == CREDENTIAL_PROVIDER,
            )
        )
        account = result.scalar_one_or_none()
        if account and not (account.password and verify_password(password, account.password)):
            account.password = hash_password(password)
            account.updated_at = now
            session.add(account)
            print(f"Reset password for {email}.")
        elif not account:
            session.add(
                Account(
                    id=new_id(),
                    user_id=user.id,
                    provider_id=CREDENTIAL_PROVIDER,
                    account_id=user.id,
                    password=hash_password(password),
                    created_at=now,
                    updated_at=now,
                )
            )

        user_id = user.id

    token, _jti = create_session_token(user_id)
    return token


def run() -> None:
    parser = argparse.ArgumentParser(description="Create a local admin user.")
    parser.add_argument("--email", required=True, help="Email address for the admin")
    parser.add_argument("--password", required=True, help="Password for the admin")
    parser.add_argument("--name", default="Administrator", help="Display name")
    parser.add_argument("--org", default="Default Organization", help="Organization name")
    args = parser.parse_args()

    if len(args.password) < 8:
        parser.error("password must be at least 8 characters")

    token = asyncio.run(create_admin(args.email, args.password, args.name, args.org))
    print("Done. Session token:")
    print(token)


if __name__ == "__main__":
    run()
