"""
工具模組
"""

from .logger import SyncLogger, LogIcons
from .config_loader import ConfigLoader

__all__ = [
    'SyncLogger',
    'LogIcons',
    'ConfigLoader',
]
