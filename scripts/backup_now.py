#!/usr/bin/env python3
"""
Write a backup of every table now, outside the API's daily schedule.

Usage:
    python scripts/backup_now.py
    python scripts/backup_now.py --dir /mnt/backups
    python scripts/backup_now.py --restore 2026-01-05T00-00-00-000Z --confirm
"""

import asyncio
import logging
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from feedesk.core.database.session import async_session
from feedesk.core.logging import configure_logging
from feedesk.modules.backup.service import BackupService

logger = logging.getLogger("feedesk.scripts.backup_now")


async def main() -> None:
    import argparse
    parser = argparse.ArgumentParser(description="Back up or restore the FeeDesk database")
    parser.add_argument("--dir", default=None, help="Backup directory (default: BACKUP_DIR)")
    parser.add_argument("--restore", metavar="TIMESTAMP", help="Restore this backup instead")
    parser.add_argument("--confirm", action="store_true", help="Required with --restore")
    args = parser.parse_args()

    configure_logging()

    async with async_session() as session:
        service = BackupService(session, backup_dir=args.dir)
        if args.restore:
            if not args.confirm:
                parser.error("--restore replaces existing data; pass --confirm")
            counts = await service.restore_from_backup(args.restore)
            logger.info("Restored %s: %s", args.restore, counts)
        else:
            path = await service.write_backup()
            logger.info("Backup written to %s", path)


if __name__ == "__main__":
    asyncio.run(main())
