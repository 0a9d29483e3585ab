"""
Per-request settings overrides (safe subset).

The admin match-test panel sends `settings_overrides` to try other fit weights or
narrative thresholds for one match run without touching the YAML. Overrides are:
1. checked against `ALLOWED_SETTINGS_OVERRIDES_TREE` (unknown keys raise `ValueError`
   naming the dotted path),
2. deep-merged onto a dump of the current settings,
3. re-validated as a new `Settings`, so the cached instance is never mutated.

Gateway URLs, API keys and file paths are not overridable.
"""

from __future__ import annotations

from typing import Any, Mapping

from erranza.config.settings import Settings

# `True` opens the whole subtree; a nested dict lists the only keys allowed below it.
ALLOWED_SETTINGS_OVERRIDES_TREE: dict[str, Any] = {
    "scoring": True,
    "narrative": {
        "templates": True,
    },
}


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        both_mappings = isinstance(value, Mapping) and isinstance(current, Mapping)
        merged[key] = _deep_merge(current, value) if both_mappings else value
    return merged


def _filter_overrides(
    overrides: Mapping[str, Any],
    *,
    allowed_tree: Mapping[str, Any],
    path: tuple[str, ...] = (),
) -> dict[str, Any]:
    """Return `overrides` unchanged if every key path is whitelisted, else raise."""
    safe: dict[str, Any] = {}
    for key, value in overrides.items():
        key_path = (*path, key)
        rule = allowed_tree.get(key)
        if rule is None:
            raise ValueError(f"settings_overrides contains a disallowed key: '{'.'.join(key_path)}'")
        if rule is True:
            safe[key] = value
        elif isinstance(value, Mapping):
            safe[key] = _filter_overrides(value, allowed_tree=rule, path=key_path)
        else:
            raise ValueError(f"settings_overrides key '{'.'.join(key_path)}' must be a mapping")
    return safe


def apply_settings_overrides(settings: Settings, overrides: Mapping[str, Any] | None) -> Settings:
    if not overrides:
        return settings
    safe = _filter_overrides(overrides, allowed_tree=ALLOWED_SETTINGS_OVERRIDES_TREE)
    return Settings.model_validate(_deep_merge(settings.model_dump(mode="python"), safe))
