"""Configuration module for Stellar.

Public API:
----------
settings: Settings instance
    Pydantic settings object with nested configuration

get_logger(name: str) -> Logger
    Get a context-aware logger for your module

setup_loguru_logger(verbose: bool = False) -> None
    Configure Loguru logger for the application

configure_httpx_logging() -> None
    Forward httpx logs into Loguru

log_startup_info() -> None
    Log configuration at startup

Usage:
------
```python
from stellar.config import settings, get_logger

batch_size = settings.matching.enrichment_batch_size
logger = get_logger(__name__)
```
"""

from .logging import (
    configure_httpx_logging,
    get_logger,
    log_startup_info,
    setup_loguru_logger,
)
from .settings import Settings, settings

__all__ = [
    "Settings",
    "configure_httpx_logging",
    "get_logger",
    "log_startup_info",
    "settings",
    "setup_loguru_logger",
]
