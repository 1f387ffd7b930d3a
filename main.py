"""
Video GIF Sync - 主入口
支援單次同步（CI）與監聽模式
"""

import os
import sys
import time
import argparse
import threading
from pathlib import Path
from typing import Optional

from utils import ConfigLoader, SyncLogger, LogIcons
from core import FfmpegConverter, FileMonitor, SyncError
from projects.video_gif import VideoGifSyncEngine


# 專案類型映射
PROJECT_ENGINES = {
    'video_gif': VideoGifSyncEngine,
}

MERGE_WINDOW_S = 1.2
RETRY_S = 1.0


def write_github_output(changed: bool, output_file: Optional[str] = None) -> bool:
    """
    將 changes_made 寫入 $GITHUB_OUTPUT（未設定時略過）

    Returns:
        是否有寫入
    """
    output_file = output_file or os.environ.get('GITHUB_OUTPUT')
    if not output_file:
        return False
    with open(output_file, 'a', encoding='utf-8') as f:
        f.write(f"changes_made={'true' if changed else 'false'}\n")
    return True


class SyncApplication:
    """同步應用程式"""

    def __init__(self, config_path: str):
        """
        Args:
            config_path: 配置文件路徑
        """
        self.config = ConfigLoader.load(config_path)

        self.logger = SyncLogger(
            self.config['project']['name'],
            log_dir=ConfigLoader.get_nested(self.config, 'logging.dir', 'logs'),
        )

        converter_config = self.config['converter']
        self.converter = FfmpegConverter(
            ffmpeg_bin=converter_config['ffmpeg_bin'],
            fps=converter_config['fps'],
            width=converter_config['width'],
            scale_flags=converter_config['scale_flags'],
            timeout=converter_config['timeout'],
            logger=self.logger,
        )

        project_type = self.config['project']['type']
        engine_class = PROJECT_ENGINES.get(project_type)

        if not engine_class:
            raise ValueError(
                f"不支援的專案類型: {project_type}\n"
                f"可用類型: {', '.join(PROJECT_ENGINES.keys())}"
            )

        self.engine = engine_class(
            config=self.config,
            converter=self.converter,
            logger=self.logger,
        )

        # 同一時間只允許一輪同步
        self.sync_lock = threading.Lock()
        self._dirty = False
        self._dirty_lock = threading.Lock()
        self._dirty_timer: Optional[threading.Timer] = None
        self.monitor: Optional[FileMonitor] = None

    def run_once(self, dry_run: bool = False) -> int:
        """
        執行單次同步

        Returns:
            結束碼：0 成功，1 失敗
        """
        try:
            with self.sync_lock:
                result = self.engine.run_sync(dry_run=dry_run, log_reason="Manual Sync")
        except SyncError as e:
            self.logger.error(LogIcons.ERROR, f"同步中止（階段: {e.stage}）")
            return 1

        if not dry_run:
            write_github_output(result.changed)
        return 0

    def run_watch(self) -> int:
        """執行監聽模式"""
        code = self.run_once()
        if code != 0:
            self.logger.warning(LogIcons.WARNING, "初始同步失敗，仍啟動監聽，下次變更時重試")

        self.monitor = FileMonitor(
            watch_path=self.config['sync']['source_folder'],
            file_patterns=self.config['file_patterns']['include'],
            callback=self._on_file_change,
            delay=self.config['sync']['watch_delay'],
            logger=self.logger,
        )
        self.monitor.start()
        self.logger.info(LogIcons.WATCH, "監控模式已啟動，按 Ctrl+C 停止...")

        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.logger.info(LogIcons.WARNING, "停止監控...")
            self.stop()
            self.logger.info(LogIcons.COMPLETE, "已安全退出")
        return 0

    def stop(self) -> None:
        if self.monitor:
            self.monitor.stop()
        with self._dirty_lock:
            if self._dirty_timer:
                self._dirty_timer.cancel()
                self._dirty_timer = None
            self._dirty = False

    # ── dirty + 合併觸發 ──────────────────────────────────────────────────────

    def _on_file_change(self) -> None:
        """
        事件進來只標記 dirty，合併窗口到期後才同步：
        - 同步中拿不到 lock 時延後重試，事件不會被丟掉
        - 同步期間又有事件，結束後自動補跑下一輪
        """
        with self._dirty_lock:
            self._dirty = True
        self._arm_timer(MERGE_WINDOW_S)

    def _arm_timer(self, delay_s: float) -> None:
        with self._dirty_lock:
            if self._dirty_timer:
                self._dirty_timer.cancel()
            timer = threading.Timer(delay_s, self._drain_dirty)
            timer.daemon = True
            self._dirty_timer = timer
            timer.start()

    def _drain_dirty(self) -> None:
        with self._dirty_lock:
            if not self._dirty:
                return

        if not self.sync_lock.acquire(blocking=False):
            self.logger.info(LogIcons.NOTE, f"正在同步中，已標記 dirty，{RETRY_S:.1f}s 後重試")
            self._arm_timer(RETRY_S)
            return

        try:
            with self._dirty_lock:
                self._dirty = False

            self.logger.info(LogIcons.PROGRESS, "偵測到影片變更，開始同步...")
            self.engine.run_sync(log_reason="Watcher Sync")

        except SyncError as e:
            # 失敗不重試，等下一次檔案變更
            self.logger.error(LogIcons.ERROR, f"同步中止（階段: {e.stage}）")

        finally:
            self.sync_lock.release()

            with self._dirty_lock:
                needs_more = self._dirty

            if needs_more:
                self.logger.info(LogIcons.NOTE, "同步期間偵測到新變更，準備補跑下一輪")
                self._arm_timer(MERGE_WINDOW_S)


def main():
    """主函數"""
    parser = argparse.ArgumentParser(
        description='Video GIF Sync - 以內容哈希同步影片 GIF 預覽',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
範例:
  # 單次同步（CI 使用）
  python main.py --config config/example.yaml

  # Dry-run 模式（僅預覽變更）
  python main.py --config config/example.yaml --dry-run

  # 監聽模式（持續運行）
  python main.py --config config/example.yaml --mode watch
        """
    )

    parser.add_argument(
        '--config',
        required=True,
        help='配置文件路徑 (例如: config/example.yaml)'
    )

    parser.add_argument(
        '--mode',
        choices=['once', 'watch'],
        default='once',
        help='運行模式: once=單次執行, watch=監聽模式 (預設: once)'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Dry-run 模式：僅預覽變更，不實際執行（僅在 once 模式下有效）'
    )

    args = parser.parse_args()

    if not Path(args.config).exists():
        print(f"❌ 錯誤：配置文件不存在: {args.config}")
        sys.exit(1)

    try:
        app = SyncApplication(args.config)
    except Exception as e:
        print(f"❌ 初始化失敗: {e}")
        sys.exit(1)

    if args.mode == 'once':
        sys.exit(app.run_once(dry_run=args.dry_run))

    if args.dry_run:
        print("⚠️  警告：Dry-run 模式僅在 once 模式下有效，已忽略")
    sys.exit(app.run_watch())


if __name__ == '__main__':
    main()
