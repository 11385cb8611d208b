from .base import Base
from .models import INCLUDE_DELETED, CommonEntity
from .session import ConnectionDescriptor, Database, connection_descriptor, create_database

__all__ = [
    "Base",
    "CommonEntity",
    "ConnectionDescriptor",
    "Database",
    "INCLUDE_DELETED",
    "connection_descriptor",
    "create_database",
]
