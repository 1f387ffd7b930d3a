"""
FFmpeg 轉檔器
將單一影片轉為 GIF 預覽，並以 Pillow 確認輸出可被正確讀取
"""

import shutil
import subprocess
from pathlib import Path
from typing import Optional, Union

from PIL import Image, UnidentifiedImageError

from .errors import ConversionError
from utils import SyncLogger, LogIcons


class FfmpegConverter:
    """影片 → GIF 轉檔器"""

    def __init__(
        self,
        ffmpeg_bin: str = 'ffmpeg',
        fps: int = 10,
        width: int = 480,
        scale_flags: str = 'lanczos',
        timeout: Optional[float] = 600,
        logger: Optional[SyncLogger] = None,
    ):
        """
        Args:
            ffmpeg_bin: ffmpeg 執行檔名稱或路徑
            fps: 輸出影格率
            width: 輸出寬度（高度等比例）
            scale_flags: 縮放演算法
            timeout: 單一轉檔逾時秒數，None 表示不限制
            logger: 日誌記錄器
        """
        self.ffmpeg_bin = ffmpeg_bin
        self.fps = fps
        self.width = width
        self.scale_flags = scale_flags
        self.timeout = timeout
        self.logger = logger
        self._resolved_bin: Optional[str] = None

    @property
    def video_filter(self) -> str:
        return f"fps={self.fps},scale={self.width}:-1:flags={self.scale_flags}"

    def _ffmpeg(self) -> str:
        """第一次真正需要轉檔時才尋找 ffmpeg"""
        if self._resolved_bin is None:
            found = shutil.which(self.ffmpeg_bin)
            if not found:
                raise ConversionError(f"找不到 ffmpeg 執行檔: {self.ffmpeg_bin}")
            self._resolved_bin = found
        return self._resolved_bin

    def build_command(self, ffmpeg: str, source: Path, output: Path) -> list:
        return [
            ffmpeg,
            '-hide_banner',
            '-loglevel', 'error',
            '-i', str(source),
            '-vf', self.video_filter,
            '-y', str(output),
        ]

    def convert(self, source_path: Union[str, Path], output_path: Union[str, Path]) -> Path:
        """
        轉檔

        Args:
            source_path: 來源影片
            output_path: 輸出 GIF 路徑（已存在時覆寫）

        Returns:
            輸出 GIF 路徑

        Raises:
            ConversionError: ffmpeg 不存在、執行失敗、逾時，或輸出不是有效的 GIF
        """
        source = Path(source_path)
        output = Path(output_path)
        output.parent.mkdir(parents=True, exist_ok=True)

        cmd = self.build_command(self._ffmpeg(), source, output)
        if self.logger:
            self.logger.debug(f"ffmpeg: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ConversionError(f"轉檔逾時 ({self.timeout}s): {source.name}") from e
        except OSError as e:
            raise ConversionError(f"無法執行 ffmpeg: {e}") from e

        if result.returncode != 0:
            stderr = (result.stderr or '').strip().splitlines()
            detail = stderr[-1] if stderr else f"exit code {result.returncode}"
            raise ConversionError(f"轉檔失敗 {source.name}: {detail}")

        self._verify_output(output)
        return output

    def _verify_output(self, output: Path) -> None:
        if not output.exists():
            raise ConversionError(f"ffmpeg 未產生輸出檔: {output}")

        try:
            with Image.open(output) as img:
                if img.format != 'GIF':
                    raise ConversionError(f"輸出格式不是 GIF（{img.format}）: {output.name}")
                width, height = img.size
                frames = getattr(img, 'n_frames', 1)
        except (UnidentifiedImageError, OSError) as e:
            raise ConversionError(f"輸出 GIF 無法讀取 {output.name}: {e}") from e

        if self.logger:
            self.logger.debug(f"{output.name}: {width}x{height}, {frames} frames")
