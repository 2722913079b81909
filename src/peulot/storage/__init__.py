"""Record store — one interface, backends chosen by configuration."""

from peulot.config import Settings
from peulot.storage.base import Storage
from peulot.storage.memory import MemStorage


def create_storage(config: Settings) -> Storage:
    """Build the backend named by ``config.storage_backend``."""
    backend = config.storage_backend.lower()
    if backend == "memory":
        return MemStorage()
    if backend == "database":
        from peulot.storage.db import DbStorage

        return DbStorage.from_url(config.database_url, require_ssl=config.database_require_ssl)
    raise ValueError(f"Unknown storage backend: {config.storage_backend!r}")


__all__ = ["MemStorage", "Storage", "create_storage"]
