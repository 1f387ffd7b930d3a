"""
同步錯誤類型

stage 標示失敗發生在哪個階段，供入口程式判斷與輸出：
  scan / load / convert / delete / save / document
"""

from typing import Optional


STAGES = ('scan', 'load', 'convert', 'delete', 'save', 'document')


class SyncError(RuntimeError):
    """同步流程中的致命錯誤（本輪中止，清單與 README 不會被改寫）"""

    def __init__(self, stage: str, message: str, asset_id: Optional[str] = None):
        if stage not in STAGES:
            raise ValueError(f"未知的同步階段: {stage}")
        self.stage = stage
        self.asset_id = asset_id
        super().__init__(f"[{stage}] {message}")


class ConversionError(RuntimeError):
    """單一影片轉檔失敗（由轉檔器拋出，引擎包裝為 SyncError）"""
