"""
Video GIF 同步引擎
在基類流程之上負責 README 預覽區塊的更新
"""

from pathlib import Path
from typing import Dict, List, Optional

from core import BaseSyncEngine
from utils import LogIcons
from .readme_builder import DEFAULT_END_MARKER, DEFAULT_START_MARKER, ReadmeBuilder


class VideoGifSyncEngine(BaseSyncEngine):
    """影片 → GIF 同步引擎"""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)

        readme_config = self.config.get('readme', {})
        readme_file = readme_config.get('file')

        self.readme_builder: Optional[ReadmeBuilder] = None
        if readme_file:
            self.readme_builder = ReadmeBuilder(
                readme_file,
                self.source_folder,
                self.output_folder,
                start_marker=readme_config.get('start_marker', DEFAULT_START_MARKER),
                end_marker=readme_config.get('end_marker', DEFAULT_END_MARKER),
            )
        else:
            self.logger.info(LogIcons.NOTE, "未設定 readme.file，略過 README 更新")

    def prepare_document(self, asset_ids: List[str], sources: Dict[str, Path]) -> Optional[str]:
        builder = self.readme_builder
        if builder is None:
            return None

        if not builder.readme_file.exists():
            self.logger.warning(LogIcons.WARNING, f"README 不存在，略過更新: {builder.readme_file}")
            return None

        with open(builder.readme_file, 'r', encoding='utf-8', newline='') as f:
            text = f.read()
        if not builder.has_markers(text):
            self.logger.warning(
                LogIcons.WARNING,
                f"README 缺少標記 {builder.start_marker} / {builder.end_marker}，略過更新"
            )
            return None

        new_text = builder.apply(text, builder.render(asset_ids, sources))
        if new_text == text:
            self.logger.info(LogIcons.NOTE, "README 內容未變動")
            return None

        return new_text

    def commit_document(self, content: str) -> None:
        with open(self.readme_builder.readme_file, 'w', encoding='utf-8', newline='') as f:
            f.write(content)
        self.logger.info(LogIcons.NOTE, f"README 已更新: {self.readme_builder.readme_file}")
