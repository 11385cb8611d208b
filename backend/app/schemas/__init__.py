from .session import AuthUser, HealthResponse

__all__ = ["AuthUser", "HealthResponse"]
