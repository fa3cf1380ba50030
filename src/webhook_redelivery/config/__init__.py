"""
Module: config
Description: Runtime configuration for reconciliation runs.
"""

from .settings import Settings, load_settings

__all__ = [
    "Settings",
    "load_settings",
]
