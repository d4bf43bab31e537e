"""
Exception hierarchy for Agent Linker.

Every error that reaches the CLI derives from AgentLinkerError so the
dispatcher can print it and exit non-zero with a single except clause.
Malformed config files never raise: they load as an empty config.
"""

from pathlib import Path
from typing import List, Sequence


class AgentLinkerError(Exception):
    """Base exception for all Agent Linker errors."""


class LinkConflictError(AgentLinkerError):
    """A plan contains targets that exist and are not the expected symlink."""

    def __init__(self, conflicts: Sequence):
        self.conflicts: List = list(conflicts)
        lines = [f"  {c.target}: {c.reason}" for c in self.conflicts]
        super().__init__(
            f"{len(self.conflicts)} conflicting target(s); rerun with --force to skip them:\n"
            + "\n".join(lines)
        )


class LinkIOError(AgentLinkerError):
    """A symlink could not be created or replaced."""

    def __init__(self, source: Path, target: Path, reason: str):
        self.source = source
        self.target = target
        self.reason = reason
        super().__init__(f"Failed to link {target} -> {source}: {reason}")


class WatchSetupError(AgentLinkerError):
    """None of the canonical roots in the chain could be watched."""


class MergeError(AgentLinkerError):
    """A resource could not be read from a root or written under merged/."""

    def __init__(self, root: Path, resource: str, reason: str):
        self.root = root
        self.resource = resource
        self.reason = reason
        super().__init__(f"Failed to merge {resource} from {root}: {reason}")


class InitError(AgentLinkerError):
    """A canonical tree could not be scaffolded."""

    def __init__(self, root: Path, reason: str):
        self.root = root
        self.reason = reason
        super().__init__(f"Failed to initialize {root}: {reason}")
