"""
Video GIF 專案模組
"""

from .sync_engine import VideoGifSyncEngine
from .readme_builder import ReadmeBuilder

__all__ = [
    'VideoGifSyncEngine',
    'ReadmeBuilder',
]
