# tests/test_dirty_watcher.py
"""
測試 SyncApplication 監聽模式的 dirty + 合併觸發，以及單次執行的結束碼

測試目標：
1) 多次連續檔案事件 → 合併為一次 sync
2) sync_lock 被占用時 → 不丟事件，會排 retry
3) sync 進行中再有事件 → sync 結束後補跑「一輪」
4) FileMonitor 只對符合模式的檔案排程
5) run_once：成功寫入 $GITHUB_OUTPUT，失敗回傳 1
"""

import threading
from types import SimpleNamespace
import pytest

import main
from main import SyncApplication, write_github_output
from core.diff_engine import SyncDiff
from core.errors import SyncError
from core import file_monitor
from core.file_monitor import FileMonitor
from core.sync_engine import SyncResult


# ----------------------------------------------------------------------
# 測試用假物件
# ----------------------------------------------------------------------

class DummyLogger:
    def __init__(self):
        self.records = []

    def info(self, icon, msg, **kwargs):
        self.records.append(("info", icon, msg))

    def warning(self, icon, msg, **kwargs):
        self.records.append(("warning", icon, msg))

    def error(self, icon, msg, **kwargs):
        self.records.append(("error", icon, msg))


class DummyEngine:
    def __init__(self, on_run=None, changed=False, error=None):
        self.calls = []
        self.on_run = on_run
        self.changed = changed
        self.error = error

    def run_sync(self, dry_run=False, log_reason="Sync"):
        self.calls.append((dry_run, log_reason))
        if self.on_run:
            self.on_run()
        if self.error:
            raise self.error
        return SyncResult(self.changed, SyncDiff([], [], []), dry_run=dry_run)


class FakeTimer:
    """
    可控 Timer：
    - start() 不等時間，只排入 queue
    - 測試端自己決定 fire() 何時執行
    """
    timers = []

    def __init__(self, delay, func):
        self.delay = delay
        self.func = func
        self.cancelled = False
        self.daemon = False

    def cancel(self):
        self.cancelled = True

    def start(self):
        FakeTimer.timers.append(self)

    def fire(self):
        if not self.cancelled:
            self.func()


def fire_next_timer():
    assert FakeTimer.timers, "No timers to fire"
    FakeTimer.timers.pop(0).fire()


def fire_all_current_timers():
    """fire「當下已排入 queue」的 timers（不包含 fire 過程中新排的）"""
    current = FakeTimer.timers[:]
    FakeTimer.timers.clear()
    for t in current:
        t.fire()


def make_app(engine=None):
    """繞過 __init__：不讀 config、不建立 logger 檔案"""
    app = SyncApplication.__new__(SyncApplication)
    app.sync_lock = threading.Lock()
    app.logger = DummyLogger()
    app.engine = engine or DummyEngine()
    app._dirty = False
    app._dirty_lock = threading.Lock()
    app._dirty_timer = None
    app.monitor = None
    return app


# ----------------------------------------------------------------------
# pytest fixtures
# ----------------------------------------------------------------------

@pytest.fixture(autouse=True)
def patch_threading_timer(monkeypatch):
    FakeTimer.timers.clear()
    monkeypatch.setattr(threading, "Timer", FakeTimer)
    yield
    FakeTimer.timers.clear()


# ----------------------------------------------------------------------
# dirty + 合併觸發
# ----------------------------------------------------------------------

def test_multiple_events_merge_into_one_sync():
    app = make_app()

    app._on_file_change()
    app._on_file_change()
    app._on_file_change()

    fire_all_current_timers()

    assert len(app.engine.calls) == 1
    assert app.engine.calls[0] == (False, "Watcher Sync")


def test_lock_busy_will_retry_not_drop():
    app = make_app()
    app.sync_lock.acquire()

    app._on_file_change()

    # 合併窗口到期：lock 忙 → 排一顆 retry timer
    fire_next_timer()
    assert app.engine.calls == []
    assert FakeTimer.timers, "沒有 retry timer"
    assert FakeTimer.timers[0].delay == main.RETRY_S

    app.sync_lock.release()

    fire_next_timer()
    assert len(app.engine.calls) == 1


def test_change_during_sync_triggers_followup_sync():
    trigger_count = {"n": 0}

    def on_run():
        # 只在第一次 run_sync 的途中再觸發一次變更
        if trigger_count["n"] == 0:
            trigger_count["n"] += 1
            app._on_file_change()

    app = make_app(DummyEngine(on_run=on_run))

    app._on_file_change()
    fire_all_current_timers()

    assert FakeTimer.timers, "應已排入補跑的 timer"

    fire_all_current_timers()

    assert len(app.engine.calls) == 2


def test_sync_error_does_not_escape_timer_and_releases_lock():
    app = make_app(DummyEngine(error=SyncError("convert", "boom")))

    app._on_file_change()
    fire_all_current_timers()

    assert len(app.engine.calls) == 1
    assert app.sync_lock.acquire(blocking=False)
    assert any(level == "error" for level, _, _ in app.logger.records)
    assert FakeTimer.timers == []  # 失敗不自動重試


def test_stop_cancels_pending_timer():
    app = make_app()
    app._on_file_change()
    pending = FakeTimer.timers[0]

    app.stop()

    assert pending.cancelled
    fire_all_current_timers()
    assert app.engine.calls == []


# ----------------------------------------------------------------------
# FileMonitor
# ----------------------------------------------------------------------

class FakeEvent:
    is_directory = False

    def __init__(self, path, dest_path=""):
        self.src_path = path
        self.dest_path = dest_path


def test_file_monitor_filters_events():
    fired = []
    fm = FileMonitor(watch_path=".", file_patterns=["*.mp4"], callback=lambda: fired.append(1), delay=0)
    handler = fm._make_handler()

    handler.on_any_event(FakeEvent("videos/notes.txt"))
    handler.on_any_event(FakeEvent("videos/.intro.mp4.part"))
    assert FakeTimer.timers == []

    handler.on_any_event(FakeEvent("videos/intro.MP4"))
    assert len(FakeTimer.timers) == 1

    fire_all_current_timers()
    assert fired == [1]


def test_file_monitor_rename_into_pattern_triggers():
    fm = FileMonitor(watch_path=".", file_patterns=["*.mp4"], callback=lambda: None, delay=0)
    handler = fm._make_handler()

    handler.on_any_event(FakeEvent("videos/render.tmp", dest_path="videos/final.mp4"))

    assert len(FakeTimer.timers) == 1


def test_file_monitor_debounce_keeps_single_live_timer():
    fm = FileMonitor(watch_path=".", file_patterns=["*.mp4"], callback=lambda: None, delay=5)

    fm._schedule()
    fm._schedule()

    assert [t.cancelled for t in FakeTimer.timers] == [True, False]


def test_file_monitor_idle_check_ignores_wall_clock(monkeypatch):
    """系統時間被往回調整時，防抖仍依單調時鐘觸發"""
    monotonic = [100.0]
    wall = [1_700_000_000.0]
    monkeypatch.setattr(
        file_monitor, "time",
        SimpleNamespace(monotonic=lambda: monotonic[0], time=lambda: wall[0]),
    )
    fired = []
    fm = FileMonitor(watch_path=".", file_patterns=["*.mp4"], callback=lambda: fired.append(1), delay=5)

    fm._schedule()
    monotonic[0] += 2
    fire_all_current_timers()
    assert fired == []  # 尚未閒置滿 delay

    fm._schedule()
    monotonic[0] += 5
    wall[0] -= 3600
    fire_all_current_timers()
    assert fired == [1]


# ----------------------------------------------------------------------
# run_once / $GITHUB_OUTPUT
# ----------------------------------------------------------------------

def test_run_once_writes_github_output(tmp_path, monkeypatch):
    output = tmp_path / "github_output"
    monkeypatch.setenv("GITHUB_OUTPUT", str(output))
    app = make_app(DummyEngine(changed=True))

    assert app.run_once() == 0
    assert output.read_text(encoding="utf-8") == "changes_made=true\n"


def test_run_once_no_changes(tmp_path, monkeypatch):
    output = tmp_path / "github_output"
    monkeypatch.setenv("GITHUB_OUTPUT", str(output))
    app = make_app(DummyEngine(changed=False))

    assert app.run_once() == 0
    assert output.read_text(encoding="utf-8") == "changes_made=false\n"


def test_run_once_dry_run_skips_output(tmp_path, monkeypatch):
    output = tmp_path / "github_output"
    monkeypatch.setenv("GITHUB_OUTPUT", str(output))
    app = make_app()

    assert app.run_once(dry_run=True) == 0
    assert app.engine.calls[0][0] is True
    assert not output.exists()


def test_run_once_failure_returns_1(tmp_path, monkeypatch):
    output = tmp_path / "github_output"
    monkeypatch.setenv("GITHUB_OUTPUT", str(output))
    app = make_app(DummyEngine(error=SyncError("scan", "disk gone")))

    assert app.run_once() == 1
    assert not output.exists()


def test_write_github_output_without_env(monkeypatch):
    monkeypatch.delenv("GITHUB_OUTPUT", raising=False)
    assert write_github_output(True) is False
