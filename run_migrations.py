#!/usr/bin/env python
"""
Apply Alembic migrations for the local product table (RECORD_BACKEND=sql)

Usage: python run_migrations.py [revision]
"""

import os
import sys

from alembic import command
from alembic.config import Config
from alembic.util import CommandError


def run_migrations(revision="head"):
    """Upgrade the local database to the given revision"""

    # Load environment from .env if exists
    if os.path.exists('.env'):
        from dotenv import load_dotenv
        load_dotenv()

    config = Config(os.path.join(os.path.dirname(os.path.abspath(__file__)), 'alembic.ini'))
    try:
        print(f"Upgrading product table to {revision}...")
        command.upgrade(config, revision)
        print("Migrations completed successfully")
        return 0
    except CommandError as e:
        print(f"Migration failed with error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(run_migrations(*sys.argv[1:2]))
