"""
同步引擎基類
掃描 → 讀清單 → 計算差異 → 轉檔/刪除 → 準備文件 → 寫清單 → 寫入文件
"""

from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, List, Optional

from .diff_engine import DiffEngine, SyncDiff
from .errors import ConversionError, SyncError
from .hash_store import HashStore
from .source_scanner import SourceScanner
from utils import SyncLogger, LogIcons


DERIVED_SUFFIX = '.gif'


class SyncResult:
    """單輪同步結果"""

    def __init__(
        self,
        changed: bool,
        diff: SyncDiff,
        documented: Optional[List[str]] = None,
        dry_run: bool = False,
    ):
        """
        Args:
            changed: 本輪是否實際轉檔或刪除（dry-run 一律為 False）
            diff: 本輪的同步計畫
            documented: 寫入文件的 identifier（已排序，僅在有變更時提供）
            dry_run: 是否為模擬執行
        """
        self.changed = changed
        self.diff = diff
        self.documented = documented or []
        self.dry_run = dry_run

    def __bool__(self) -> bool:
        return self.changed

    def __repr__(self) -> str:
        return f"SyncResult(changed={self.changed}, diff={self.diff.summary()}, dry_run={self.dry_run})"


class BaseSyncEngine(ABC):
    """同步引擎基類"""

    def __init__(
        self,
        config: Dict[str, Any],
        converter,
        logger: SyncLogger,
        scanner: Optional[SourceScanner] = None,
        store: Optional[HashStore] = None,
    ):
        """
        初始化同步引擎

        Args:
            config: 完整配置字典（已補齊預設值）
            converter: 轉檔器，需提供 convert(source_path, output_path)
            logger: 日誌記錄器
            scanner: 來源掃描器（None 時依配置建立）
            store: 清單存取器（None 時依配置建立）
        """
        self.config = config
        self.converter = converter
        self.logger = logger

        sync_config = config['sync']
        self.source_folder = Path(sync_config['source_folder'])
        self.output_folder = Path(sync_config['output_folder'])
        self.max_workers = sync_config.get('max_workers', 1)
        self.project_name = config['project']['name']

        self.scanner = scanner or SourceScanner(
            self.source_folder,
            config.get('file_patterns', {}).get('include'),
            logger,
        )
        self.store = store or HashStore(sync_config['manifest_file'])

    @abstractmethod
    def prepare_document(self, asset_ids: List[str], sources: Dict[str, Path]) -> Optional[str]:
        """
        讀取並重新產生說明文件內容（由子類實現，不寫入）

        Args:
            asset_ids: 仍有來源影片的 GIF identifier（已排序）
            sources: {identifier: 來源影片路徑}

        Returns:
            需要寫入的新內容；不需改寫時回傳 None
        """

    @abstractmethod
    def commit_document(self, content: str) -> None:
        """寫入 prepare_document 產生的內容（由子類實現）"""

    def derived_path(self, identifier: str) -> Path:
        return self.output_folder / f"{identifier}{DERIVED_SUFFIX}"

    def run_sync(self, dry_run: bool = False, log_reason: str = "Sync") -> SyncResult:
        """
        執行同步（核心流程）

        轉檔失敗會中止本輪：清單與文件都不會改寫，
        但本輪已完成的 GIF 會留在磁碟上，下一輪會再次轉檔。
        說明文件在寫清單之前讀取與產生，讀取失敗同樣不改寫清單。

        Args:
            dry_run: 是否為模擬執行（只計算並列出計畫）
            log_reason: 日誌原因

        Returns:
            SyncResult

        Raises:
            SyncError: 任一階段的致命錯誤
        """
        try:
            self.logger.info(LogIcons.START, f"{log_reason}: 掃描來源影片 {self.source_folder}")

            # 1. 目前狀態
            sources = self.scanner.list_sources()
            current = self.scanner.hash_sources(sources)

            # 2. 上一輪狀態
            previous = self.store.load()
            for warn in self.store.load_warnings:
                self.logger.warning(LogIcons.WARNING, warn)

            # 3. 計算差異
            diff = DiffEngine.calculate(current, previous)

            if not diff.has_changes():
                self.logger.info(LogIcons.COMPLETE, "無內容變更，所有 GIF 皆為最新")
                return SyncResult(False, diff, dry_run=dry_run)

            self.logger.info(LogIcons.PROGRESS, f"變更統計: {diff.summary()}")

            if dry_run:
                self.logger.info(LogIcons.WARNING, "Dry-run 模式：僅預覽，不實際執行")
                self._print_diff_details(diff)
                return SyncResult(False, diff, dry_run=True)

            # 4. 執行轉檔與刪除
            self._convert_all(diff, sources)
            self._delete_all(diff.to_delete)

            # 5. 準備說明文件（讀取失敗時清單不改寫，下一輪會重做）
            try:
                documented = self.documented_assets(current)
                pending = self.prepare_document(documented, sources)
            except (OSError, UnicodeDecodeError) as e:
                raise SyncError('document', f"說明文件讀取失敗: {e}") from e

            # 6. 寫入清單（由目前狀態整份重建）
            self.store.save(current)
            self.logger.info(LogIcons.MANIFEST, f"清單已更新: {self.store.manifest_file}（{len(current)} 筆）")

            # 7. 寫入說明文件
            if pending is not None:
                try:
                    self.commit_document(pending)
                except OSError as e:
                    raise SyncError('document', f"說明文件寫入失敗: {e}") from e

            self.logger.success(LogIcons.COMPLETE, f"同步完成 ({diff.summary()})")
            return SyncResult(True, diff, documented)

        except SyncError as e:
            self.logger.error(LogIcons.ERROR, f"同步失敗: {e}")
            raise
        except Exception as e:
            self.logger.error(LogIcons.ERROR, f"同步失敗: {e}", exc_info=e)
            raise

    def documented_assets(self, current: Dict[str, str]) -> List[str]:
        """輸出資料夾中仍有對應來源影片的 GIF（依 identifier 排序）"""
        if not self.output_folder.is_dir():
            return []
        return sorted(
            p.stem for p in self.output_folder.iterdir()
            if p.is_file() and p.suffix.lower() == DERIVED_SUFFIX and p.stem in current
        )

    def _convert_all(self, diff: SyncDiff, sources: Dict[str, Path]) -> None:
        """轉檔（新增 + 更新）；第一個失敗即停止排程並拋出"""
        targets = diff.to_convert
        if not targets:
            return

        self.logger.info(
            LogIcons.LAUNCH,
            f"開始轉檔 (執行緒: {self.max_workers})... 目標: {len(targets)}"
        )

        if self.max_workers <= 1:
            for identifier in targets:
                self._convert_file(identifier, sources[identifier], diff)
            return

        executor = ThreadPoolExecutor(max_workers=self.max_workers)
        try:
            futures = {
                executor.submit(self._convert_file, identifier, sources[identifier], diff): identifier
                for identifier in targets
            }
            for future in as_completed(futures):
                future.result()
        finally:
            # 發生錯誤時取消尚未開始的轉檔
            executor.shutdown(wait=True, cancel_futures=True)

    def _convert_file(self, identifier: str, source_path: Path, diff: SyncDiff) -> None:
        reason = diff.reason(identifier)
        self.logger.info(LogIcons.CONVERT, f"產生 {identifier}{DERIVED_SUFFIX} (Reason: {reason})")

        try:
            self.converter.convert(source_path, self.derived_path(identifier))
        except (ConversionError, OSError) as e:
            raise SyncError('convert', str(e), identifier) from e

        icon = LogIcons.NEW if reason == "New" else LogIcons.UPDATE
        self.logger.success(icon, f"轉檔完成: {identifier}")

    def _delete_all(self, to_delete: List[str]) -> None:
        """刪除來源已消失的 GIF；檔案本來就不存在不算錯誤"""
        for identifier in to_delete:
            path = self.derived_path(identifier)
            try:
                path.unlink()
            except FileNotFoundError:
                self.logger.debug(f"GIF 已不存在，略過刪除: {path}")
                continue
            except OSError as e:
                raise SyncError('delete', f"刪除失敗 {path}: {e}", identifier) from e
            self.logger.info(LogIcons.DELETE, f"已刪除: {path.name}")

    def _print_diff_details(self, diff: SyncDiff) -> None:
        """打印差異詳情（用於 dry-run）"""
        sections = [
            (LogIcons.NEW, "待新增", "+", diff.to_add),
            (LogIcons.UPDATE, "待更新", "~", diff.to_update),
            (LogIcons.DELETE, "待刪除", "-", diff.to_delete),
        ]
        for icon, title, mark, names in sections:
            if not names:
                continue
            self.logger.info(icon, f"{title} ({len(names)}):")
            for name in names[:10]:  # 最多顯示 10 個
                self.logger.info("  ", f"  {mark} {name}")
            if len(names) > 10:
                self.logger.info("  ", f"  ... 還有 {len(names) - 10} 個")
