"""
測試哈希計算器
"""

import os
import pytest
from io import BytesIO
from core.hash_calculator import HashCalculator


class TestHashCalculator:
    """測試 HashCalculator"""

    def test_matches_git_hash_object(self):
        """與 git hash-object 結果一致"""
        assert HashCalculator.calculate(b"") == "e69de29bb2d1d6434b8b29ae775ad8c2e48c5391"
        assert HashCalculator.calculate(b"hello\n") == "ce013625030ba8dba906f756967f9e9ca394464a"

    def test_calculate_from_bytes(self):
        data = b"Hello, World!"
        hash1 = HashCalculator.calculate(data)
        hash2 = HashCalculator.calculate(data)

        assert hash1 == hash2
        assert len(hash1) == 40  # SHA-1 為 40 位十六進位

    def test_calculate_from_bytesio(self):
        data = b"Test data"
        assert HashCalculator.calculate(BytesIO(data)) == HashCalculator.calculate(data)

    def test_file_matches_bytes(self, tmp_path):
        """檔案串流計算與一次讀入的結果相同"""
        data = os.urandom(3 * 1024 * 1024 + 17)  # 跨越多個 chunk
        path = tmp_path / "clip.mp4"
        path.write_bytes(data)

        assert HashCalculator.calculate(path) == HashCalculator.calculate(data)
        assert HashCalculator.calculate(str(path)) == HashCalculator.calculate(data)

    def test_name_and_mtime_do_not_matter(self, tmp_path):
        """相同內容、不同檔名與修改時間 → 相同哈希"""
        a = tmp_path / "a.mp4"
        b = tmp_path / "b.mp4"
        a.write_bytes(b"same bytes")
        b.write_bytes(b"same bytes")
        os.utime(b, (0, 0))

        assert HashCalculator.calculate(a) == HashCalculator.calculate(b)

    def test_different_data_different_hash(self):
        assert HashCalculator.calculate(b"Data 1") != HashCalculator.calculate(b"Data 2")

    def test_missing_file_raises_oserror(self, tmp_path):
        with pytest.raises(OSError):
            HashCalculator.calculate(tmp_path / "missing.mp4")

    def test_unsupported_type(self):
        with pytest.raises(TypeError):
            HashCalculator.calculate(123)

    def test_compare_hashes(self):
        hash1 = "abc123def456"
        hash2 = "ABC123DEF456"  # 大小寫不同也視為不同
        hash3 = "xyz789"

        assert HashCalculator.compare(hash1, "abc123def456") is True
        assert HashCalculator.compare(hash1, hash2) is False
        assert HashCalculator.compare(hash1, hash3) is False


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
