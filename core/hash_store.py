"""
哈希清單（manifest）讀寫

格式：UTF-8 純文字，每行 `<identifier> <hash>`，依 identifier 排序，無標頭
清單記錄的是「上一次成功產生 GIF 時」來源影片的內容哈希
"""

import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Dict, List, Union

from .errors import SyncError


class HashStore:
    """清單存取器"""

    def __init__(self, manifest_file: Union[str, Path]):
        """
        Args:
            manifest_file: 清單檔路徑
        """
        self.manifest_file = Path(manifest_file)

        # load() 中跳過的損壞行，由上層用 logger 輸出
        self.load_warnings: List[str] = []

    def load(self) -> Dict[str, str]:
        """
        讀取清單

        檔案不存在視為空清單；格式錯誤的行會被跳過並記錄警告，
        不會讓整份清單讀取失敗。同一 identifier 出現多次時以最後一筆為準。

        Raises:
            SyncError: 檔案存在但無法讀取（stage=load）
        """
        self.load_warnings = []
        entries: Dict[str, str] = {}

        if not self.manifest_file.exists():
            return entries

        try:
            text = self.manifest_file.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            raise SyncError('load', f"清單讀取失敗 {self.manifest_file}: {e}") from e

        for lineno, line in enumerate(text.splitlines(), start=1):
            fields = line.split()
            if not fields:
                continue
            if len(fields) != 2:
                self.load_warnings.append(
                    f"清單第 {lineno} 行格式錯誤，已略過: {line.strip()!r}"
                )
                continue
            identifier, file_hash = fields
            entries[identifier] = file_hash

        return entries

    def save(self, entries: Dict[str, str]) -> None:
        """
        以原子方式覆寫清單（先寫暫存檔，再 os.replace）

        Raises:
            SyncError: 寫入失敗（stage=save），原清單保持不變
        """
        content = ''.join(
            f"{identifier} {entries[identifier]}\n"
            for identifier in sorted(entries)
        )

        tmp_name = None
        try:
            self.manifest_file.parent.mkdir(parents=True, exist_ok=True)
            with NamedTemporaryFile(
                mode='w',
                encoding='utf-8',
                newline='\n',
                delete=False,
                dir=str(self.manifest_file.parent),
                suffix='.tmp',
            ) as tf:
                tmp_name = tf.name
                tf.write(content)
                tf.flush()
                os.fsync(tf.fileno())
            os.replace(tmp_name, str(self.manifest_file))
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise SyncError('save', f"清單寫入失敗 {self.manifest_file}: {e}") from e
