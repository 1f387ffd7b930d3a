"""
檔案監聽器
監控來源影片資料夾，變更平息後觸發同步
"""

import fnmatch
import threading
import time
from pathlib import Path
from typing import Callable, List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from utils import SyncLogger, LogIcons


class FileMonitor:
    """來源資料夾變更監聽器"""

    def __init__(
        self,
        watch_path: str,
        file_patterns: List[str],
        callback: Callable[[], None],
        delay: float = 10,
        logger: Optional[SyncLogger] = None,
    ):
        """
        Args:
            watch_path:    來源影片資料夾（不遞迴，與掃描範圍一致）
            file_patterns: 檔案模式列表（如 ['*.mp4']）
            callback:      變更平息後呼叫，無參數
            delay:         防抖延遲（秒）
            logger:        日誌記錄器
        """
        self.watch_path = watch_path
        self.file_patterns = [str(p).lower() for p in file_patterns]
        self.callback = callback
        self.delay = delay
        self.logger = logger

        self.observer = Observer()

        self._last_event_time: float = 0
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    def _make_handler(self) -> FileSystemEventHandler:
        monitor = self

        class Handler(FileSystemEventHandler):
            def on_any_event(self, event: FileSystemEvent):
                if event.is_directory:
                    return
                paths = [event.src_path, getattr(event, 'dest_path', '')]
                if any(p and monitor.matches(p) for p in paths):
                    monitor._schedule()

        return Handler()

    def matches(self, file_path: str) -> bool:
        name = Path(str(file_path)).name.lower()
        # ffmpeg / 編輯器暫存檔
        if name.startswith('.') or name.startswith('~$'):
            return False
        return any(fnmatch.fnmatch(name, pattern) for pattern in self.file_patterns)

    def _schedule(self) -> None:
        """重設防抖 timer"""
        with self._lock:
            self._last_event_time = time.monotonic()
            if self._timer:
                self._timer.cancel()
            self._timer = threading.Timer(self.delay, self._fire_if_idle)
            self._timer.daemon = True
            self._timer.start()

    def _fire_if_idle(self) -> None:
        with self._lock:
            if time.monotonic() - self._last_event_time < self.delay:
                return  # 還有新事件進來，不觸發
            self._timer = None

        try:
            self.callback()
        except Exception as e:
            if self.logger:
                self.logger.error(LogIcons.ERROR, f"[FileMonitor] 回調執行錯誤: {e}", exc_info=e)

    def start(self) -> None:
        Path(self.watch_path).mkdir(parents=True, exist_ok=True)
        self.observer.schedule(self._make_handler(), self.watch_path, recursive=False)
        self.observer.start()
        if self.logger:
            self.logger.info(LogIcons.WATCH, f"監聽資料夾: {self.watch_path}")

    def stop(self) -> None:
        with self._lock:
            if self._timer:
                self._timer.cancel()
                self._timer = None
        self.observer.stop()
        self.observer.join()
