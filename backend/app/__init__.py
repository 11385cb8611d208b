"""
Bootstrap layer of the my-page-project backend.

Modules are organised into config, database, services, routers and
middleware; domain modules plug their routers and ``CommonEntity`` models into
the application built by :func:`create_application`.
"""

from .config import ConfigurationError, Settings, get_settings, load_settings
from .server import create_application

__all__ = ["ConfigurationError", "Settings", "create_application", "get_settings", "load_settings"]
