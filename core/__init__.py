"""
核心模組
"""

from .errors import SyncError, ConversionError
from .hash_calculator import HashCalculator
from .hash_store import HashStore
from .source_scanner import SourceScanner
from .diff_engine import DiffEngine, SyncDiff
from .sync_engine import BaseSyncEngine, SyncResult
from .ffmpeg_converter import FfmpegConverter
from .file_monitor import FileMonitor

__all__ = [
    'SyncError',
    'ConversionError',
    'HashCalculator',
    'HashStore',
    'SourceScanner',
    'DiffEngine',
    'SyncDiff',
    'BaseSyncEngine',
    'SyncResult',
    'FfmpegConverter',
    'FileMonitor',
]
