#!/usr/bin/env python3
"""Reset script for Ledgerly.

Deletes the data directory (database, logs, exports and cash worksheets) and
recreates an empty database by applying all migrations. Only runs when
enable_reset is set under [app] in ~/.config/ledgerly.toml.
"""

import shutil
import sys

from cli.migrate import apply_pending
from config import get_config_path, load_config
from db.client import init_backend, reset_backend


def reset():
    """Reset the application state."""
    print("Ledgerly Reset Script")
    print("=" * 50)

    config = load_config()

    if not config.enable_reset:
        print("\nReset is disabled in configuration (enable_reset=false).")
        print(f"To enable reset, set enable_reset=true under [app] in {get_config_path()}")
        sys.exit(1)

    print(f"\nData directory: {config.base_dir}")
    print(f"Database: {config.db_path}")
    print(f"Logs: {config.log_dir}")
    print(f"Exports: {config.export_dir}")
    print(f"Cash worksheets: {config.cash_counter_dir}")

    response = input("\nThis will delete ALL data. Continue? (yes/no): ")
    if response.lower() != "yes":
        print("Reset cancelled.")
        sys.exit(0)

    if config.base_dir.exists():
        print(f"\nDeleting {config.base_dir}...")
        shutil.rmtree(config.base_dir)
        print("✓ Data directory deleted")
    else:
        print(f"\n✓ Data directory does not exist: {config.base_dir}")

    print("\nRunning migrations...")
    reset_backend()
    applied = apply_pending(init_backend(config))

    print("\n" + "=" * 50)
    print(f"Reset complete! Applied {len(applied)} migration(s).")
    print(f"Database location: {config.db_path}")


if __name__ == "__main__":
    reset()
