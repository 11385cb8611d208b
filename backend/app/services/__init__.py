from .session import AuthSessionService
from .storage import StorageService

__all__ = ["AuthSessionService", "StorageService"]
