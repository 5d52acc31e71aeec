"""
Configuration module for Evony Tactician.
"""
from .constants import *
from .logging_config import configure_logging, get_logger

__all__ = [
    # Logging
    'configure_logging',
    'get_logger',
    # Constants (all exported via *)
]
