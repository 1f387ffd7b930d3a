"""
README 區塊建構器：產生 GIF 預覽的 Markdown 並替換標記區段
"""

import os
from pathlib import Path
from typing import Dict, List, Optional, Union


DEFAULT_START_MARKER = '<!-- START_GIFS -->'
DEFAULT_END_MARKER = '<!-- END_GIFS -->'

ENTRY_TEMPLATE = "### {name}\n[![Preview of {name}]({gif})](./{video})\n\n"


def _relative(path: Path, base: Path) -> str:
    """相對於 README 所在目錄的 POSIX 路徑"""
    return Path(os.path.relpath(path, base)).as_posix()


class ReadmeBuilder:

    def __init__(
        self,
        readme_file: Union[str, Path],
        source_folder: Union[str, Path],
        output_folder: Union[str, Path],
        start_marker: str = DEFAULT_START_MARKER,
        end_marker: str = DEFAULT_END_MARKER,
    ):
        self.readme_file = Path(readme_file)
        self.source_folder = Path(source_folder)
        self.output_folder = Path(output_folder)
        self.start_marker = start_marker
        self.end_marker = end_marker

    def render(self, asset_ids: List[str], sources: Optional[Dict[str, Path]] = None) -> str:
        """
        依傳入順序產生 Markdown 區塊

        Args:
            asset_ids: GIF identifier（呼叫端負責排序與過濾）
            sources: {identifier: 來源影片路徑}；缺少時假設為 <source_folder>/<id>.mp4
        """
        sources = sources or {}
        base = self.readme_file.parent
        parts = []
        for name in asset_ids:
            video = sources.get(name, self.source_folder / f"{name}.mp4")
            parts.append(ENTRY_TEMPLATE.format(
                name=name,
                gif=_relative(self.output_folder / f"{name}.gif", base),
                video=_relative(video, base),
            ))
        return ''.join(parts)

    def has_markers(self, text: str) -> bool:
        return self._marker_span(text.splitlines(keepends=True)) is not None

    def apply(self, text: str, block: str) -> str:
        """
        將兩個標記行之間的內容換成 block，標記行與其外的內容原樣保留

        找不到成對標記時回傳原文
        """
        lines = text.splitlines(keepends=True)
        span = self._marker_span(lines)
        if span is None:
            return text

        start, end = span
        start_line = lines[start]
        if not start_line.endswith(('\n', '\r')):
            start_line += '\n'
        return ''.join(lines[:start] + [start_line, block] + lines[end:])

    def _marker_span(self, lines: List[str]):
        start = next(
            (i for i, line in enumerate(lines) if self.start_marker in line),
            None,
        )
        if start is None:
            return None
        end = next(
            (i for i in range(start + 1, len(lines)) if self.end_marker in lines[i]),
            None,
        )
        if end is None:
            return None
        return start, end
