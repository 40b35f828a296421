"""Utility modules for LifeOS"""

from .logger import (
    get_logger,
    log_collaborator_call,
    setup_logging,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "log_collaborator_call",
]
