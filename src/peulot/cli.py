"""Peulot CLI — database setup and the API server."""

import asyncio
import logging
import sys


def main() -> None:
    """Run a maintenance command: peulot [serve | init-db]"""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if len(sys.argv) < 2 or sys.argv[1] == "--help":
        print("Usage: peulot [serve | init-db]")
        print("  serve:    Start the API server on port 8000")
        print("  init-db:  Create tables in the configured database")
        sys.exit(0 if sys.argv[1:] == ["--help"] else 1)

    command = sys.argv[1]
    if command == "serve":
        from peulot.api.main import run
        run()
    elif command == "init-db":
        asyncio.run(_init_db())
    else:
        print(f"Unknown command: {command}")
        sys.exit(1)


async def _init_db() -> None:
    from peulot.config import settings
    from peulot.storage import create_storage

    store = create_storage(settings)
    try:
        await store.init()
    finally:
        await store.close()
    print(f"Initialized {settings.storage_backend} storage")
