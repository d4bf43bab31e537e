"""
Watch daemon: keep client links in sync while canonical trees are edited.

Every root in the chain is watched (so editing a parent tree rebuilds the
child's projection). Bursts of events are debounced into one trigger, and
rebuilds are single-flight: at most one runs at a time and a change that
arrives mid-rebuild queues exactly one follow-up.

    IDLE --trigger--> RUNNING --trigger--> RUNNING_PENDING
      ^                  |                        |
      +---- done --------+       done: run again -+
"""

import signal
import threading
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from agent_linker.core.apply import apply_link_plan
from agent_linker.core.backup import create_backup_session
from agent_linker.core.chain import get_distinct_roots
from agent_linker.core.errors import LinkIOError, WatchSetupError
from agent_linker.core.paths import resolve_monorepo_roots
from agent_linker.core.plan import build_monorepo_link_plan
from agent_linker.core.types import Client, InheritanceChain, Scope
from agent_linker.utils import timestamp

WATCHED_NAMES = ("AGENTS.md", "CLAUDE.md", "config.yaml", "commands", "hooks", "skills")
DEBOUNCE_SECONDS = 0.1

# Reads (opened/closed_no_write) must not count: a rebuild reads the sources.
_MUTATING_EVENTS = {"created", "deleted", "modified", "moved"}


class RebuildState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    RUNNING_PENDING = "running_pending"


def should_watch(relative_path: str) -> bool:
    normalized = str(relative_path).replace("\\", "/")
    return any(normalized == name or normalized.startswith(f"{name}/") for name in WATCHED_NAMES)


def get_watchable_paths(chain: InheritanceChain) -> List[Path]:
    return [root for root in get_distinct_roots(chain) if root.is_dir()]


class _ChainEventHandler(FileSystemEventHandler):
    def __init__(self, daemon: "WatchDaemon", root: Path):
        super().__init__()
        self.daemon = daemon
        self.root = root

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type not in _MUTATING_EVENTS:
            return
        self.daemon.handle_change(self.root, event.src_path)
        dest = getattr(event, "dest_path", "")
        if dest:
            self.daemon.handle_change(self.root, dest)


class WatchDaemon:
    def __init__(
        self,
        chain: InheritanceChain,
        clients: Optional[List[Client]] = None,
        home_dir: Optional[Path] = None,
        on_log: Optional[Callable[[str], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        debounce: float = DEBOUNCE_SECONDS,
        rebuild: Optional[Callable[[], None]] = None,
    ):
        self.chain = chain
        self.clients = clients
        self.home_dir = home_dir
        self.debounce = debounce
        self.watched: List[Path] = []
        self.rebuild_count = 0

        self._log = on_log or print
        self._on_error = on_error or (lambda e: print(str(e)))
        self._rebuild = rebuild or self.regenerate
        self._lock = threading.Lock()
        self._state = RebuildState.IDLE
        self._timer: Optional[threading.Timer] = None
        self._observer: Optional[Observer] = None
        self._aborted = False

    @property
    def state(self) -> RebuildState:
        with self._lock:
            return self._state

    @property
    def aborted(self) -> bool:
        return self._aborted

    # --- Events -------------------------------------------------------------

    def handle_change(self, root: Path, path: str) -> None:
        if self._aborted:
            return
        try:
            relative = Path(path).relative_to(root).as_posix()
        except ValueError:
            return
        if not should_watch(relative):
            return

        self._log(f"[{timestamp()}] Change detected: {root.name}/{relative}")
        self._schedule()

    def _schedule(self) -> None:
        with self._lock:
            if self._aborted:
                return
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.debounce, self.trigger)
            self._timer.daemon = True
            self._timer.start()

    def trigger(self) -> None:
        """Run a rebuild now, or queue one if a rebuild is in flight."""
        with self._lock:
            if self._aborted:
                return
            if self._state is not RebuildState.IDLE:
                self._state = RebuildState.RUNNING_PENDING
                return
            self._state = RebuildState.RUNNING

        while True:
            self._run_cycle()
            with self._lock:
                again = self._state is RebuildState.RUNNING_PENDING and not self._aborted
                self._state = RebuildState.RUNNING if again else RebuildState.IDLE
            if not again:
                return
            self._log(f"[{timestamp()}] Processing queued changes...")

    def _run_cycle(self) -> None:
        self.rebuild_count += 1
        try:
            self._rebuild()
        except Exception as e:
            self._on_error(e)

    # --- Rebuild ------------------------------------------------------------

    def regenerate(self) -> None:
        """One merge -> plan -> apply cycle for the chain."""
        self._log(f"[{timestamp()}] Regenerating merged content...")
        plan = build_monorepo_link_plan(self.chain, home_dir=self.home_dir, clients=self.clients)

        if not plan.changes:
            self._log(f"[{timestamp()}] No changes to apply.")
            return

        roots = resolve_monorepo_roots(self.chain, home_dir=self.home_dir)
        backup = create_backup_session(roots.canonical_root, Scope.MONOREPO, "watch-rebuild")
        try:
            result = apply_link_plan(plan, backup=backup, force=True)
        except LinkIOError as e:
            for message in backup.rollback():
                self._log(f"[{timestamp()}] {message}")
            self._log(f"[{timestamp()}] Error applying changes: {e}")
            raise
        backup.finalize()
        self._log(f"[{timestamp()}] Done. Applied {result.applied} link(s).")

    # --- Lifecycle ----------------------------------------------------------

    def start(self) -> List[Path]:
        paths = get_watchable_paths(self.chain)
        if not paths:
            raise WatchSetupError("No .agents folders found to watch")

        observer = Observer()
        observer.start()
        for root in paths:
            try:
                observer.schedule(_ChainEventHandler(self, root), str(root), recursive=True)
                self.watched.append(root)
            except OSError as e:
                self._on_error(WatchSetupError(f"Failed to watch {root}: {e}"))

        if not self.watched:
            observer.stop()
            raise WatchSetupError(f"Could not watch any of: {', '.join(str(p) for p in paths)}")

        self._observer = observer
        self._log("Watching for changes... (Ctrl+C to stop)")
        self._log("Monitored folders:")
        for root in self.watched:
            self._log(f"  - {root}")
        return list(self.watched)

    def stop(self) -> None:
        """Stop watching. Idempotent; never raises."""
        with self._lock:
            self._aborted = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            observer, self._observer = self._observer, None

        if observer is None:
            return
        try:
            observer.stop()
            observer.join(timeout=5)
        except (OSError, RuntimeError) as e:
            self._on_error(e)


def run_watch(
    chain: InheritanceChain,
    clients: Optional[List[Client]] = None,
    home_dir: Optional[Path] = None,
    on_log: Optional[Callable[[str], None]] = None,
    on_error: Optional[Callable[[Exception], None]] = None,
) -> None:
    """Watch until Ctrl+C or SIGTERM."""
    daemon = WatchDaemon(chain, clients, home_dir, on_log=on_log, on_error=on_error)
    daemon.start()

    done = threading.Event()
    if threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGTERM, lambda *_: done.set())
    try:
        while not done.wait(0.5):
            pass
    except KeyboardInterrupt:
        pass
    finally:
        daemon.stop()
