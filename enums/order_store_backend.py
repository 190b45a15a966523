from enum import Enum


class OrderStoreBackend(str, Enum):
    MEMORY = "memory"      # Single-process dev/test store
    DATABASE = "database"  # SQLAlchemy-backed store
