#!/usr/bin/env python3
"""
Create the first admin account (or any user) directly in the database.

Usage:
    python scripts/create_admin.py --username admin --password 'Secret123'
    python scripts/create_admin.py --username desk1 --password 'Secret123' --role staff

Requirements: migrations applied (alembic upgrade head), database reachable.
"""

import asyncio
import logging
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from feedesk.core.auth.models import UserRole
from feedesk.core.auth.password import PASSWORD_RULE, is_strong_password
from feedesk.core.auth.service import AuthService
from feedesk.core.database.session import async_session
from feedesk.core.exceptions import ConflictError
from feedesk.core.logging import configure_logging

logger = logging.getLogger("feedesk.scripts.create_admin")


async def main() -> None:
    import argparse
    parser = argparse.ArgumentParser(description="Create a FeeDesk user")
    parser.add_argument("--username", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--full-name", default=None)
    parser.add_argument("--role", choices=[r.value for r in UserRole], default=UserRole.ADMIN.value)
    args = parser.parse_args()

    configure_logging()

    if not is_strong_password(args.password):
        parser.error(PASSWORD_RULE)

    async with async_session() as session:
        try:
            user = await AuthService(session).create_user(
                username=args.username,
                password=args.password,
                role=UserRole(args.role),
                full_name=args.full_name,
            )
        except ConflictError as e:
            logger.error(e.message)
            sys.exit(1)
        await session.commit()

    logger.info("Created %s user '%s' (id=%s)", user.role, user.username, user.id)


if __name__ == "__main__":
    asyncio.run(main())
