import datetime as dt
import tomllib
from typing import Any, Dict, Mapping


def insert_path(tree: Dict[str, Any], dotted_path: str, value: Any) -> None:
    """Populate ``tree`` with ``value`` located at ``dotted_path``."""

    segments = [segment.strip() for segment in dotted_path.split(".") if segment.strip()]
    if not segments:
        raise ValueError("Override keys must contain at least one non-empty segment")

    cursor: Dict[str, Any] = tree
    for segment in segments[:-1]:
        existing = cursor.get(segment)
        if existing is None:
            next_node: Dict[str, Any] = {}
            cursor[segment] = next_node
            cursor = next_node
        elif isinstance(existing, dict):
            cursor = existing
        else:
            raise ValueError(
                f"Cannot override nested path '{dotted_path}': segment '{segment}' is already a value"
            )

    leaf = segments[-1]
    if isinstance(cursor.get(leaf), dict):
        raise ValueError(f"Cannot assign value to '{dotted_path}': existing node at '{leaf}' is a mapping")
    cursor[leaf] = value


def parse_override_value(text: str) -> Any:
    """
    Interpret an override value as a TOML literal ("true", "2.5", "[1, 2]").
    Anything that is not a literal is kept as a plain string.
    """
    try:
        value = tomllib.loads(f"value = {text}")["value"]
    except tomllib.TOMLDecodeError:
        return text
    # times of day stay text, the config dataclasses parse them
    if isinstance(value, (dt.date, dt.time)):
        return text
    return value


def parse_overrides(pairs: list[str]) -> Dict[str, Any]:
    """Expand repeated ``KEY=VALUE`` items into a nested mapping."""
    overrides: Dict[str, Any] = {}
    for item in pairs:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"--set requires KEY=VALUE format (got {item!r})")
        insert_path(overrides, key, parse_override_value(value.strip()))
    return overrides


def deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``base`` with ``overrides`` applied; nested tables merge key by key."""
    merged: Dict[str, Any] = dict(base)
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged
