"""
Configuration structures for WallSync.

This module contains data classes for the video wall session and its
drift-correction settings.
"""

from .wall_config import SyncConfig, WallConfig

__all__ = ['SyncConfig', 'WallConfig']
