"""Configuration manager for Fisherman.

Loads config from YAML, merges with defaults, provides dot-notation access.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG: dict[str, Any] = {
    "cache": {
        "ttl_seconds": 300,
        "max_size": 1000,
    },
    "database": {
        "domain_list_path": "",
        "update_interval_hours": 24,
    },
    "detection": {
        "legitimate_domains": [
            "paypal.com",
            "amazon.com",
            "facebook.com",
            "google.com",
            "microsoft.com",
            "apple.com",
            "gmail.com",
            "outlook.com",
            "youtube.com",
            "twitter.com",
            "instagram.com",
            "linkedin.com",
            "github.com",
            "stackoverflow.com",
            "reddit.com",
        ],
    },
    "maintenance": {
        "cache_purge_interval_minutes": 30,
    },
    "logging": {
        "level": "INFO",
        "file": "",
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base. Override values win."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


class FishermanConfig:
    """Configuration manager with dot-notation access and YAML persistence."""

    def __init__(self, data: dict[str, Any] | None = None):
        self._data = copy.deepcopy(data or DEFAULT_CONFIG)

    def get(self, dotted_key: str, default: Any = None) -> Any:
        """Get a value using dot-notation (e.g., 'cache.ttl_seconds')."""
        current = self._data
        for k in dotted_key.split("."):
            if isinstance(current, dict) and k in current:
                current = current[k]
            else:
                return default
        return current

    def set(self, dotted_key: str, value: Any) -> None:
        """Set a value using dot-notation."""
        keys = dotted_key.split(".")
        current = self._data
        for k in keys[:-1]:
            current = current.setdefault(k, {})
        current[keys[-1]] = value

    def save(self, path: Path) -> None:
        """Save configuration to YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self._data, f, default_flow_style=False, sort_keys=False)

    @classmethod
    def load(cls, path: Path) -> FishermanConfig:
        """Load config from YAML, merging with defaults for missing keys."""
        path = Path(path)
        if not path.exists():
            return cls()
        with open(path, encoding="utf-8") as f:
            user_data = yaml.safe_load(f) or {}
        return cls(data=_deep_merge(DEFAULT_CONFIG, user_data))
