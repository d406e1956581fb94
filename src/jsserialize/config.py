"""YAML/dict config loader for jsserialize.

Supports loading encode options from a YAML file or a plain dict (for
embedding in a larger application config, e.g. a template renderer's).

Example YAML:

    jsserialize:
      space: 2
      is_json: false
      unsafe: false
      ignore_function: true
"""

from __future__ import annotations
from pathlib import Path
from typing import Any

from .serializer import EncodeOptions


def load_config(data: dict[str, Any] | None) -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline)."""
    data = data or {}
    # Support nested under "jsserialize" key or flat
    if "jsserialize" in data:
        data = data["jsserialize"] or {}

    space = data.get("space")
    if isinstance(space, str) and space.isdigit():
        space = int(space)

    return {
        "space": space,
        "is_json": bool(data.get("is_json", data.get("isJSON", False))),
        "unsafe": bool(data.get("unsafe", False)),
        "ignore_function": bool(data.get("ignore_function", data.get("ignoreFunction", False))),
    }


def load_from_yaml(path: str | Path) -> dict[str, Any]:
    """Load config from a YAML file."""
    import yaml
    with open(path) as f:
        return load_config(yaml.safe_load(f))


def create_options(config: dict[str, Any] | None = None, **overrides: Any) -> EncodeOptions:
    """Create EncodeOptions from a (raw or normalized) config dict."""
    cfg = load_config(config)
    cfg.update(overrides)
    return EncodeOptions(**cfg)
