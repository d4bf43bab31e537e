"""
Backup sessions around a mutating apply.

A session records the prior state of every target the applier is about to
touch. On success it is finalized into `<canonical>/backups/<stamp>-<op>/`
with a manifest.json; on failure `rollback()` puts the targets back the
way they were. The session itself never creates links.
"""

import json
import os
import shutil
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .types import Scope

BACKUPS_DIRNAME = "backups"


def make_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")


@dataclass
class BackupEntry:
    target: Path
    state: str  # "absent" | "symlink" | "file" | "dir"
    link: Optional[str] = None
    saved: Optional[Path] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": str(self.target),
            "state": self.state,
            "link": self.link,
            "saved": str(self.saved) if self.saved else None,
        }


@dataclass
class BackupSession:
    canonical_root: Path
    scope: Scope
    operation: str
    timestamp: str
    entries: List[BackupEntry] = field(default_factory=list)
    finalized: bool = False

    @property
    def path(self) -> Path:
        return self.canonical_root / BACKUPS_DIRNAME / f"{self.timestamp}-{self.operation}"

    def record(self, target: Path) -> None:
        """Capture target's current state. Only the first capture counts."""
        target = Path(target)
        if any(entry.target == target for entry in self.entries):
            return

        if target.is_symlink():
            entry = BackupEntry(target=target, state="symlink", link=os.readlink(target))
        elif target.is_dir():
            saved = self.path / "files" / str(len(self.entries))
            shutil.copytree(target, saved, symlinks=True)
            entry = BackupEntry(target=target, state="dir", saved=saved)
        elif target.exists():
            saved = self.path / "files" / str(len(self.entries))
            saved.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(target, saved)
            entry = BackupEntry(target=target, state="file", saved=saved)
        else:
            entry = BackupEntry(target=target, state="absent")
        self.entries.append(entry)

    def rollback(self) -> List[str]:
        """
        Restore every recorded target, newest first.

        Returns a list of error messages for targets that could not be
        restored; an empty list means a clean rollback.
        """
        errors: List[str] = []
        for entry in reversed(self.entries):
            try:
                _restore(entry)
            except OSError as e:
                errors.append(f"Could not restore {entry.target}: {e}")
        return errors

    def finalize(self) -> Optional[Path]:
        """Persist the manifest. Sessions that captured nothing leave no trace."""
        self.finalized = True
        if not self.entries:
            return None

        self.path.mkdir(parents=True, exist_ok=True)
        manifest = {
            "operation": self.operation,
            "scope": self.scope.value,
            "timestamp": self.timestamp,
            "canonical_root": str(self.canonical_root),
            "entries": [entry.to_dict() for entry in self.entries],
        }
        manifest_path = self.path / "manifest.json"
        manifest_path.write_text(json.dumps(manifest, indent=2, ensure_ascii=False), encoding="utf-8")
        return manifest_path


def _clear(target: Path) -> None:
    if target.is_symlink() or target.is_file():
        target.unlink()
    elif target.is_dir():
        shutil.rmtree(target)


def _restore(entry: BackupEntry) -> None:
    target = entry.target

    if entry.state == "absent":
        if target.is_symlink():
            target.unlink()
        return

    _clear(target)
    target.parent.mkdir(parents=True, exist_ok=True)
    if entry.state == "symlink":
        os.symlink(entry.link, target)
    elif entry.state == "dir":
        shutil.copytree(entry.saved, target, symlinks=True)
    elif entry.state == "file":
        shutil.copy2(entry.saved, target)
    else:
        raise ValueError(f"Unknown backup state: {entry.state!r}")


def create_backup_session(
    canonical_root: Path,
    scope: Scope,
    operation: str,
    timestamp: Optional[str] = None,
) -> BackupSession:
    return BackupSession(
        canonical_root=Path(canonical_root),
        scope=scope,
        operation=operation,
        timestamp=timestamp or make_timestamp(),
    )


def load_backup_manifest(backup_dir: Path) -> Optional[Dict[str, Any]]:
    manifest_file = Path(backup_dir) / "manifest.json"
    if not manifest_file.exists():
        return None
    try:
        return json.loads(manifest_file.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        return None
