"""
統一日誌系統
終端輸出精簡訊息，檔案保留完整除錯紀錄
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


class SyncLogger:
    """GIF 同步日誌管理器"""

    def __init__(self, project_name: str, log_dir: Optional[str] = "logs"):
        """
        Args:
            project_name: 專案名稱（同時作為 logger 名稱與日誌檔前綴）
            log_dir: 日誌目錄；None 時只輸出到終端
        """
        self.project_name = project_name
        self.logger = logging.getLogger(f"gif_sync.{project_name}")
        self.logger.setLevel(logging.DEBUG)

        # 同名 logger 只初始化一次
        if self.logger.handlers:
            return

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(logging.Formatter(
            '[%(asctime)s] %(message)s',
            datefmt='%H:%M:%S'
        ))
        self.logger.addHandler(console_handler)

        if log_dir:
            log_path = Path(log_dir)
            log_path.mkdir(parents=True, exist_ok=True)
            log_file = log_path / f"{project_name}_{datetime.now():%Y%m%d}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            ))
            self.logger.addHandler(file_handler)

    def info(self, icon, message):
        self.logger.info(f"{icon} {message}")

    def success(self, icon, message):
        """成功日誌（info 級別）"""
        self.logger.info(f"{icon} {message}")

    def warning(self, icon, message):
        self.logger.warning(f"{icon} {message}")

    def error(self, icon, message, exc_info=None):
        if exc_info:
            self.logger.error(f"{icon} {message}", exc_info=exc_info)
        else:
            self.logger.error(f"{icon} {message}")

    def debug(self, message):
        self.logger.debug(message)


class LogIcons:
    """統一的日誌圖示"""
    START = "🏁"
    LAUNCH = "🚀"
    PROGRESS = "🔄"
    SCAN = "🔍"
    NEW = "🆕"
    UPDATE = "🔄"
    DELETE = "🗑️"
    CONVERT = "🎞️"
    MANIFEST = "📒"
    NOTE = "📝"
    COMPLETE = "✅"
    ERROR = "❌"
    WARNING = "⚠️"
    WATCH = "👁️"
