"""
Logging configuration and utilities for the CPR trading engine.
"""
from .config import configure_logging, get_logger, mask_credentials

__all__ = ["configure_logging", "get_logger", "mask_credentials"]
