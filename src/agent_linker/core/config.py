"""
Per-root configuration (config.yaml) and behavior resolution.

A missing, empty or unparsable config file loads as an empty NodeConfig,
which means "inherit everything".
"""

import re
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import yaml

from .types import ExtendBehavior, NodeConfig, ResourceName

CONFIG_FILENAME = "config.yaml"


def get_config_path(agents_root: Path) -> Path:
    return Path(agents_root) / CONFIG_FILENAME


def config_exists(agents_root: Path) -> bool:
    return get_config_path(agents_root).is_file()


def load_config(agents_root: Path) -> NodeConfig:
    config_path = get_config_path(agents_root)
    if not config_path.is_file():
        return NodeConfig()

    try:
        content = config_path.read_text(encoding="utf-8")
        parsed = yaml.safe_load(content)
    except (yaml.YAMLError, OSError, UnicodeDecodeError):
        return NodeConfig()

    return NodeConfig.from_dict(parsed)


def save_config(agents_root: Path, config: NodeConfig) -> Path:
    config_path = get_config_path(agents_root)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    content = yaml.safe_dump(
        config.to_dict(),
        sort_keys=False,
        default_flow_style=False,
        indent=2,
        width=80,
    )
    config_path.write_text(content, encoding="utf-8")
    return config_path


def _resource_key(resource: Union[ResourceName, str]) -> str:
    return resource.value if isinstance(resource, ResourceName) else resource


def get_extend_behavior(config: NodeConfig, resource: Union[ResourceName, str]) -> ExtendBehavior:
    if config.extends is None or config.extends is True:
        return ExtendBehavior.INHERIT
    if config.extends is False:
        return ExtendBehavior.OVERRIDE

    specific = config.extends.get(_resource_key(resource))
    if specific is not None:
        return specific
    return config.extends.get("default", ExtendBehavior.INHERIT)


def get_include_list(config: NodeConfig, resource: Union[ResourceName, str]) -> Optional[List[str]]:
    """
    Items to cherry-pick from ancestors under `compose`.

    None means "not configured"; an empty list is an explicit "nothing".
    """
    if config.include is None:
        return None
    return config.include.get(_resource_key(resource))


def _glob_to_regex(pattern: str) -> "re.Pattern[str]":
    # `**` crosses separators, `*` stays within one segment.
    segments = []
    for chunk in pattern.split("**"):
        segments.append("[^/]*".join(re.escape(part) for part in chunk.split("*")))
    return re.compile("^" + ".*".join(segments) + "$")


def matches_glob(path: str, pattern: str) -> bool:
    return _glob_to_regex(pattern).match(path) is not None


def matches_any(relative_path: str, patterns: Sequence[str]) -> bool:
    normalized = str(relative_path).replace("\\", "/")
    return any(matches_glob(normalized, pattern) for pattern in patterns)


def is_excluded(config: NodeConfig, relative_path: str) -> bool:
    if not config.exclude:
        return False
    return matches_any(relative_path, config.exclude)


def create_default_config(extends_all: bool) -> NodeConfig:
    return NodeConfig(extends=extends_all)


def create_detailed_config(behaviors: Dict[str, ExtendBehavior]) -> NodeConfig:
    extends = {r.value: behaviors[r.value] for r in ResourceName if r.value in behaviors}
    extends["default"] = ExtendBehavior.INHERIT
    return NodeConfig(extends=extends)


def create_compose_config(
    behaviors: Dict[str, ExtendBehavior],
    include: Optional[Dict[str, List[str]]] = None,
) -> NodeConfig:
    config = create_detailed_config(behaviors)
    if include is not None:
        config.include = {key: list(value) for key, value in include.items()}
    return config
