"""
Merge engine.

Given the effective chain (nearest first) and the behavior configured for
a resource, produce the single path that clients should be linked to:

- override: the current root's own resource, or nothing
- inherit:  the first root in the chain that has the resource
- extend:   every root's resource merged, nearest wins on name collision
- compose:  the include-listed items from ancestors plus all local items

Whenever more than one root contributes, the result is synthesized under
`<current>/merged/`. That output is deleted and rebuilt from scratch on
every resolution; it is never patched in place.
"""

import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple

from .config import matches_any
from .errors import MergeError
from .types import ExtendBehavior

MERGED_DIRNAME = "merged"
SEPARATOR = "\n\n---\n\n"

CLAUDE_MD = "CLAUDE.md"
AGENTS_MD = "AGENTS.md"


def get_merged_dir(agents_root: Path) -> Path:
    return Path(agents_root) / MERGED_DIRNAME


@contextmanager
def _merging(root: Path, resource: str) -> Iterator[None]:
    """Report filesystem failures against the root and resource involved."""
    try:
        yield
    except (OSError, UnicodeDecodeError) as e:
        raise MergeError(Path(root), resource, str(e)) from e


def clean_merged_dir(agents_root: Path) -> None:
    merged = get_merged_dir(agents_root)
    if merged.exists() or merged.is_symlink():
        with _merging(agents_root, MERGED_DIRNAME):
            _remove_path(merged)


def _remove_path(path: Path) -> None:
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def _clear_for(target: Path, is_dir: bool) -> None:
    # A nearer root may turn a file into a directory of the same name, or back.
    if target.is_symlink() or (target.exists() and target.is_dir() != is_dir):
        _remove_path(target)


# --- Markdown ---------------------------------------------------------------


def _join(left: str, right: str) -> str:
    return f"{left.rstrip()}{SEPARATOR}{right.lstrip()}"


def _read_if_exists(path: Path) -> str:
    path = Path(path)
    if not path.is_file():
        return ""
    with _merging(path.parent, path.name):
        return path.read_text(encoding="utf-8")


def merge_markdown_chain(file_paths: Sequence[Path]) -> str:
    """
    Concatenate files in the given order with a `---` separator.

    Missing and whitespace-only files are skipped.
    """
    result = ""
    for file_path in file_paths:
        content = _read_if_exists(file_path)
        if not content.strip():
            continue
        result = content if not result else _join(result, content)
    return result


def _instructions_file(agents_root: Path) -> Optional[Path]:
    # CLAUDE.md takes priority over AGENTS.md within the same root.
    for name in (CLAUDE_MD, AGENTS_MD):
        candidate = Path(agents_root) / name
        if candidate.is_file():
            return candidate
    return None


def merge_agents_md(
    agents_paths: Sequence[Path],
    current_root: Path,
    behavior: ExtendBehavior,
) -> Optional[Path]:
    merged_path = get_merged_dir(current_root) / AGENTS_MD
    if merged_path.exists() or merged_path.is_symlink():
        with _merging(current_root, AGENTS_MD):
            _remove_path(merged_path)

    if behavior == ExtendBehavior.OVERRIDE:
        return _instructions_file(current_root)

    if behavior == ExtendBehavior.INHERIT:
        for agents_root in agents_paths:
            found = _instructions_file(agents_root)
            if found:
                return found
        return None

    if behavior in (ExtendBehavior.EXTEND, ExtendBehavior.COMPOSE):
        files = [f for f in (_instructions_file(root) for root in agents_paths) if f]
        if not files:
            return None
        if len(files) == 1:
            return files[0]

        content = merge_markdown_chain(list(reversed(files)))
        if not content:
            return None
        with _merging(current_root, AGENTS_MD):
            merged_path.parent.mkdir(parents=True, exist_ok=True)
            merged_path.write_text(content, encoding="utf-8")
        return merged_path

    raise ValueError(f"Unknown extend behavior: {behavior!r}")


# --- Directories ------------------------------------------------------------


def copy_directory_contents(
    src_dir: Path,
    dest_dir: Path,
    exclude: Sequence[str] = (),
    prefix: str = "",
) -> None:
    """
    Recursively copy files and subdirectories of src_dir into dest_dir.

    Whatever src_dir holds replaces a same-named entry in dest_dir, even
    when one side is a file and the other a directory.

    `prefix` is the "/"-joined path of src_dir used for exclude matching.
    """
    _clear_for(dest_dir, is_dir=True)
    dest_dir.mkdir(parents=True, exist_ok=True)
    for item in sorted(Path(src_dir).iterdir()):
        relative = f"{prefix}/{item.name}" if prefix else item.name
        if exclude and matches_any(relative, exclude):
            continue
        target = dest_dir / item.name
        if item.is_dir():
            copy_directory_contents(item, target, exclude, relative)
        else:
            _clear_for(target, is_dir=False)
            shutil.copy2(item, target)


def _copy_item(source: Path, dest: Path, exclude: Sequence[str], relative: str) -> None:
    if exclude and matches_any(relative, exclude):
        return
    if source.is_dir():
        copy_directory_contents(source, dest, exclude, relative)
    else:
        dest.parent.mkdir(parents=True, exist_ok=True)
        _clear_for(dest, is_dir=False)
        shutil.copy2(source, dest)


def _fresh_merge_dir(current_root: Path, resource: str) -> Path:
    merged = get_merged_dir(current_root) / resource
    if merged.exists() or merged.is_symlink():
        with _merging(current_root, resource):
            _remove_path(merged)
    return merged


def merge_directory_chain(
    agents_paths: Sequence[Path],
    current_root: Path,
    resource: str,
    behavior: ExtendBehavior,
    include_list: Optional[Sequence[str]] = None,
    exclude: Sequence[str] = (),
) -> Optional[Path]:
    """
    Resolve one directory resource across the chain.

    Returns the effective source directory, or None when nothing in the
    chain provides the resource.

    Raises:
        MergeError: A contributing root could not be read or merged/ could
            not be written
    """
    current_root = Path(current_root)
    merged_dir = _fresh_merge_dir(current_root, resource)

    if behavior == ExtendBehavior.OVERRIDE:
        current_dir = current_root / resource
        return current_dir if current_dir.is_dir() else None

    if behavior == ExtendBehavior.INHERIT:
        for agents_root in agents_paths:
            resource_dir = Path(agents_root) / resource
            if resource_dir.is_dir():
                return resource_dir
        return None

    if behavior == ExtendBehavior.COMPOSE:
        return _merge_compose(agents_paths, current_root, resource, list(include_list or []), merged_dir, exclude)

    if behavior == ExtendBehavior.EXTEND:
        roots = [Path(root) for root in agents_paths if (Path(root) / resource).is_dir()]
        if not roots:
            return None
        if len(roots) == 1:
            return roots[0] / resource

        for root in reversed(roots):
            with _merging(root, resource):
                copy_directory_contents(root / resource, merged_dir, exclude, resource)
        return merged_dir

    raise ValueError(f"Unknown extend behavior: {behavior!r}")


def _merge_compose(
    agents_paths: Sequence[Path],
    current_root: Path,
    resource: str,
    include_list: List[str],
    merged_dir: Path,
    exclude: Sequence[str],
) -> Optional[Path]:
    current_dir = current_root / resource
    current_exists = current_dir.is_dir()

    if not include_list:
        return current_dir if current_exists else None

    parents = [Path(p) for p in agents_paths if Path(p) != current_root]

    picked: List[Tuple[str, Path]] = []
    for item_name in include_list:
        clean_name = item_name.rstrip("/\\")
        for parent in parents:
            if (parent / resource / clean_name).exists():
                picked.append((clean_name, parent))
                break

    if not picked:
        return current_dir if current_exists else None

    for name, parent in picked:
        with _merging(parent, resource):
            merged_dir.mkdir(parents=True, exist_ok=True)
            _copy_item(parent / resource / name, merged_dir / name, exclude, f"{resource}/{name}")

    if current_exists:
        with _merging(current_root, resource):
            copy_directory_contents(current_dir, merged_dir, exclude, resource)

    return merged_dir
