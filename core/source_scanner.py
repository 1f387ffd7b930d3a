"""
來源影片掃描器
列出來源資料夾中的影片並計算目前的內容哈希
"""

import fnmatch
from pathlib import Path
from typing import Dict, List, Optional, Union

from .errors import SyncError
from .hash_calculator import HashCalculator
from utils import SyncLogger, LogIcons


class SourceScanner:
    """來源資料夾掃描器（不遞迴子資料夾）"""

    def __init__(
        self,
        source_folder: Union[str, Path],
        include_patterns: Optional[List[str]] = None,
        logger: Optional[SyncLogger] = None,
    ):
        """
        Args:
            source_folder: 來源影片資料夾
            include_patterns: 檔名模式（不分大小寫），預設 ['*.mp4']
            logger: 日誌記錄器
        """
        self.source_folder = Path(source_folder)
        self.include_patterns = [p.lower() for p in (include_patterns or ['*.mp4'])]
        self.logger = logger

    def matches(self, filename: str) -> bool:
        name = filename.lower()
        return any(fnmatch.fnmatch(name, pattern) for pattern in self.include_patterns)

    def list_sources(self) -> Dict[str, Path]:
        """
        列出來源檔案 {identifier: path}

        identifier = 去副檔名的檔名。資料夾不存在時回傳空 dict。

        Raises:
            SyncError: 資料夾存在但無法列出（stage=scan）
        """
        sources: Dict[str, Path] = {}

        if not self.source_folder.exists():
            self._warn(f"來源資料夾不存在: {self.source_folder}")
            return sources

        try:
            candidates = sorted(
                p for p in self.source_folder.iterdir()
                if p.is_file() and self.matches(p.name)
            )
        except OSError as e:
            raise SyncError('scan', f"無法讀取來源資料夾 {self.source_folder}: {e}") from e

        for path in candidates:
            identifier = path.stem
            if not identifier or any(ch.isspace() for ch in identifier):
                self._warn(f"檔名含空白字元，清單無法記錄，已略過: {path.name}")
                continue
            if identifier in sources:
                self._warn(
                    f"identifier 重複（{sources[identifier].name} / {path.name}），"
                    f"已略過: {path.name}"
                )
                continue
            sources[identifier] = path

        return sources

    def scan(self) -> Dict[str, str]:
        """
        掃描來源資料夾，回傳 {identifier: content_hash}

        Raises:
            SyncError: 資料夾或檔案無法讀取（stage=scan）
        """
        return self.hash_sources(self.list_sources())

    def hash_sources(self, sources: Dict[str, Path]) -> Dict[str, str]:
        """計算 list_sources() 結果中每個檔案的內容哈希"""
        current: Dict[str, str] = {}

        for identifier, path in sources.items():
            try:
                current[identifier] = HashCalculator.calculate(path)
            except OSError as e:
                raise SyncError('scan', f"讀取影片失敗 {path.name}: {e}", identifier) from e

        if self.logger:
            self.logger.info(LogIcons.SCAN, f"來源影片: {len(current)} 個")
        return current

    def _warn(self, message: str) -> None:
        if self.logger:
            self.logger.warning(LogIcons.WARNING, message)
