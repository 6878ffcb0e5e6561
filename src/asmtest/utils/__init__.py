"""Utility functions and common types for asmtest."""

from asmtest.utils.types import ArchFamily, Backend, TargetArch
from asmtest.utils.logging import setup_logging, get_logger

__all__ = [
    "ArchFamily",
    "Backend",
    "TargetArch",
    "setup_logging",
    "get_logger",
]
