from .logging import configure_logging
from .security import (
    check_basic_credentials,
    constant_time_compare,
    now_utc,
    parse_basic_authorization,
)

__all__ = [
    "check_basic_credentials",
    "configure_logging",
    "constant_time_compare",
    "now_utc",
    "parse_basic_authorization",
]
