"""
差異計算
比對目前掃描結果與清單，產生本輪的同步計畫（純函式，不做任何 I/O）
"""

from typing import Dict, List

from .hash_calculator import HashCalculator


class SyncDiff:
    """同步差異（每輪重新計算，不落地）"""

    def __init__(
        self,
        to_add: List[str],
        to_update: List[str],
        to_delete: List[str]
    ):
        self.to_add = to_add
        self.to_update = to_update
        self.to_delete = to_delete

    @property
    def to_convert(self) -> List[str]:
        """需要（重新）產生 GIF 的 identifier，新增與更新走同一條路徑"""
        return sorted(self.to_add + self.to_update)

    def has_changes(self) -> bool:
        return bool(self.to_add or self.to_update or self.to_delete)

    def summary(self) -> str:
        """變更摘要"""
        return f"+{len(self.to_add)} ~{len(self.to_update)} -{len(self.to_delete)}"

    def reason(self, identifier: str) -> str:
        """轉檔原因（僅供日誌）"""
        return "New" if identifier in self.to_add else "Updated"

    def __repr__(self) -> str:
        return (
            f"SyncDiff(to_add={self.to_add!r}, to_update={self.to_update!r}, "
            f"to_delete={self.to_delete!r})"
        )


class DiffEngine:
    """差異計算器"""

    @staticmethod
    def calculate(current: Dict[str, str], previous: Dict[str, str]) -> SyncDiff:
        """
        Args:
            current: 目前來源影片 {identifier: hash}
            previous: 清單中的上一輪狀態 {identifier: hash}

        Returns:
            SyncDiff；哈希相同的 identifier 不會出現在任何清單中
        """
        to_add = sorted(
            name for name in current
            if name not in previous
        )

        to_update = sorted(
            name for name in current
            if name in previous
            and not HashCalculator.compare(current[name], previous[name])
        )

        to_delete = sorted(
            name for name in previous
            if name not in current
        )

        return SyncDiff(to_add, to_update, to_delete)
