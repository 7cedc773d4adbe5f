from __future__ import annotations

import json
import dataclasses
import collections.abc
from pathlib import Path
from typing import Any, Optional

import yaml


# --------------------------
# Helpers
# --------------------------

def _to_builtin(obj: Any) -> Any:
    # Outcome dataclasses -> plain dicts, recursively
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: _to_builtin(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, (list, tuple)):
        return [_to_builtin(x) for x in obj]
    if isinstance(obj, collections.abc.Mapping):
        return {k: _to_builtin(v) for k, v in obj.items()}
    return obj


def detect_format(path: Optional[str] = None, data_hint: Optional[str] = None) -> Optional[str]:
    """
    Returns 'json', 'yaml' or None.
    Uses the file extension first; falls back to simple data sniffing if provided.
    """
    if path:
        ext = Path(path).suffix.lower()
        if ext == ".json":
            return 'json'
        if ext in (".yaml", ".yml"):
            return 'yaml'
    if data_hint is not None:
        s = data_hint.lstrip()
        if s.startswith('{') or s.startswith('['):
            return 'json'
        if s.startswith('---') or s.startswith('- '):
            return 'yaml'
    return None


# --------------------------
# Public API
# --------------------------

def deserialize(text: str, *, fmt: Optional[str] = None) -> Any:
    """
    Load JSON or YAML text. If fmt is None, sniff it from the text.
    Returns the raw text when the format is unknown.
    """
    f = fmt or detect_format(data_hint=text)
    if f == 'json':
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            # YAML is a superset of JSON
            return yaml.safe_load(text)
    if f == 'yaml':
        return yaml.safe_load(text)
    return text


def serialize(value: Any, *, fmt: str, pretty: bool = True) -> str:
    """
    Convert an outcome (or any plain value) into text.
    - fmt: 'json' | 'yaml'
    """
    f = (fmt or '').lower()
    built = _to_builtin(value)
    if f == 'json':
        return json.dumps(built, ensure_ascii=False, indent=2 if pretty else None)
    if f == 'yaml':
        return yaml.safe_dump(built, sort_keys=False)
    raise ValueError(f"Unsupported serialization format: {fmt!r}")


__all__ = [
    "deserialize",
    "serialize",
    "detect_format",
]
