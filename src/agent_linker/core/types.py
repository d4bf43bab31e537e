"""Shared types and data structures for Agent Linker."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union


class Scope(Enum):
    GLOBAL = "global"
    PROJECT = "project"
    MONOREPO = "monorepo"


class SourceKind(Enum):
    FILE = "file"
    DIR = "dir"


class Client(Enum):
    CLAUDE = "claude"
    FACTORY = "factory"
    CODEX = "codex"
    CURSOR = "cursor"
    OPENCODE = "opencode"

    @classmethod
    def parse(cls, value: str) -> "Client":
        try:
            return cls(value.strip().lower())
        except ValueError:
            valid = ", ".join(c.value for c in cls)
            raise ValueError(f"Invalid client '{value}'. Valid clients: {valid}") from None


ALL_CLIENTS: List[Client] = list(Client)


class ExtendBehavior(Enum):
    """How a canonical root combines a resource with its ancestors."""
    INHERIT = "inherit"    # first match in the chain wins
    OVERRIDE = "override"  # current root only
    EXTEND = "extend"      # union of every level, nearest wins on collision
    COMPOSE = "compose"    # cherry-picked ancestor items + everything local


class ResourceName(Enum):
    AGENTS_MD = "AGENTS.md"
    COMMANDS = "commands"
    SKILLS = "skills"
    HOOKS = "hooks"


DIRECTORY_RESOURCES: Tuple[ResourceName, ...] = (
    ResourceName.COMMANDS,
    ResourceName.HOOKS,
    ResourceName.SKILLS,
)


@dataclass(frozen=True)
class InheritanceChain:
    """
    Ordered canonical roots for one starting directory.

    `ancestors` is nearest-first. `global_root` is the home directory's
    root and is tracked separately from the ancestors.
    """
    current: Optional[Path] = None
    ancestors: Tuple[Path, ...] = ()
    global_root: Optional[Path] = None


@dataclass
class NodeConfig:
    """Parsed config.yaml of one canonical root."""
    extends: Union[bool, Dict[str, ExtendBehavior], None] = None
    include: Optional[Dict[str, List[str]]] = None
    exclude: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "NodeConfig":
        if not isinstance(data, dict):
            return cls()

        extends: Union[bool, Dict[str, ExtendBehavior], None] = None
        raw_extends = data.get("extends")
        if isinstance(raw_extends, bool):
            extends = raw_extends
        elif isinstance(raw_extends, dict):
            extends = {}
            for key, value in raw_extends.items():
                try:
                    extends[str(key)] = ExtendBehavior(value)
                except ValueError:
                    continue

        include: Optional[Dict[str, List[str]]] = None
        raw_include = data.get("include")
        if isinstance(raw_include, dict):
            include = {
                str(key): [str(item) for item in value]
                for key, value in raw_include.items()
                if isinstance(value, list)
            }

        raw_exclude = data.get("exclude")
        exclude = [str(p) for p in raw_exclude] if isinstance(raw_exclude, list) else []

        return cls(extends=extends, include=include, exclude=exclude)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if isinstance(self.extends, bool):
            data["extends"] = self.extends
        elif isinstance(self.extends, dict):
            data["extends"] = {key: value.value for key, value in self.extends.items()}
        if self.include is not None:
            data["include"] = {key: list(value) for key, value in self.include.items()}
        if self.exclude:
            data["exclude"] = list(self.exclude)
        return data


@dataclass(frozen=True)
class Mapping:
    """One resolved source projected to several client targets."""
    name: str
    source: Path
    targets: Tuple[Path, ...]
    kind: SourceKind


# --- Link tasks -------------------------------------------------------------


@dataclass(frozen=True)
class EnsureSourceTask:
    type = "ensure-source"
    path: Path
    target: Path
    kind: SourceKind


@dataclass(frozen=True)
class LinkTask:
    type = "link"
    source: Path
    target: Path
    kind: SourceKind
    replace_symlink: bool = False


@dataclass(frozen=True)
class ConflictTask:
    type = "conflict"
    source: Path
    target: Path
    reason: str
    kind: Optional[SourceKind] = None


@dataclass(frozen=True)
class NoopTask:
    type = "noop"
    source: Path
    target: Path


AnyLinkTask = Union[EnsureSourceTask, LinkTask, ConflictTask, NoopTask]


@dataclass
class LinkPlan:
    tasks: List[AnyLinkTask] = field(default_factory=list)
    changes: List[LinkTask] = field(default_factory=list)
    conflicts: List[ConflictTask] = field(default_factory=list)


@dataclass
class TargetStatus:
    path: Path
    status: str  # "linked" | "missing" | "conflict"


@dataclass
class LinkStatus:
    name: str
    source: Path
    targets: List[TargetStatus] = field(default_factory=list)


@dataclass
class ApplyResult:
    applied: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    conflicts: int = 0
    dry_run: bool = False


@dataclass
class RepairResult:
    scope: Scope
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return len(self.errors) == 0


@dataclass
class DiscoveredItem:
    """An item visible somewhere in the chain (read-only listing)."""
    name: str  # "build.md" or "shared-skill/"
    path: Path
    source: Path
    type: str  # "command" | "skill" | "hook"


@dataclass
class DetectionResult:
    client: Client
    detected: bool
    reason: str = ""


@dataclass
class InitResult:
    agents_root: Path
    created: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    is_monorepo: bool = False
