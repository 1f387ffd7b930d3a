"""
哈希計算器
以 git blob 物件 ID（SHA-1）計算檔案內容哈希，與 `git hash-object` 結果一致
"""

import hashlib
import os
from io import BytesIO
from pathlib import Path
from typing import Union


CHUNK_SIZE = 1024 * 1024


class HashCalculator:
    """檔案內容哈希計算器"""

    @staticmethod
    def calculate(file_source: Union[str, Path, bytes, BytesIO]) -> str:
        """
        計算內容哈希（只取決於位元組內容，與檔名、修改時間無關）

        Args:
            file_source: 可以是：
                - 檔案路徑（str / Path），以串流方式讀取，不會整檔載入記憶體
                - 二進位數據（bytes）
                - BytesIO 物件

        Returns:
            40 位十六進位小寫字串

        Raises:
            OSError: 檔案無法讀取
            TypeError: 不支援的輸入類型

        Example:
            HashCalculator.calculate('media/videos/intro.mp4')
            HashCalculator.calculate(b'')  # e69de29bb2d1d6434b8b29ae775ad8c2e48c5391
        """
        if isinstance(file_source, (str, Path)):
            size = os.path.getsize(file_source)
            digest = hashlib.sha1(f"blob {size}\0".encode('ascii'))
            with open(file_source, 'rb') as f:
                for chunk in iter(lambda: f.read(CHUNK_SIZE), b''):
                    digest.update(chunk)
            return digest.hexdigest()

        if isinstance(file_source, BytesIO):
            data = file_source.getvalue()
        elif isinstance(file_source, bytes):
            data = file_source
        else:
            raise TypeError(
                f"不支援的類型: {type(file_source)}，"
                f"僅支援 str, Path, bytes, BytesIO"
            )

        digest = hashlib.sha1(f"blob {len(data)}\0".encode('ascii'))
        digest.update(data)
        return digest.hexdigest()

    @staticmethod
    def compare(hash1: str, hash2: str) -> bool:
        """比較兩個哈希值是否完全相同（掃描結果一律為小寫十六進位）"""
        return hash1 == hash2
