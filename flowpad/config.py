"""
Configuration management for FlowPad.

Settings come from three layers, highest priority first:
1. Environment variables (FLOWPAD_*), which app.py may populate from .env
2. config.json next to the project root
3. Built-in defaults

Config is only read for editor defaults; the graph itself is never persisted.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from flowpad.paths import get_config_path

logger = logging.getLogger(__name__)

ENV_PREFIX = "FLOWPAD_"


@dataclass(frozen=True)
class EditorSettings:
    default_text: str = "placeholder"
    # Random placement region for new nodes
    position_width: float = 500.0
    position_height: float = 500.0
    node_id_prefix: str = "node-"
    port: int = 8080


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration from config.json."""
    config_path = config_path or get_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Failed to load config from {config_path}: {e}")
            return {}
    return {}


def save_config(config: dict, config_path: Optional[Path] = None) -> None:
    """Save configuration to config.json."""
    config_path = config_path or get_config_path()
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config, f, indent=2)


def _lookup(config: dict, key: str):
    env_val = os.environ.get(ENV_PREFIX + key.upper())
    if env_val is not None:
        return env_val
    return config.get(key)


def _as_number(raw, default, cast):
    if raw is None:
        return default
    try:
        return cast(raw)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring invalid numeric setting {raw!r}, using {default}")
        return default


def get_editor_settings(config_path: Optional[Path] = None) -> EditorSettings:
    """
    Resolve editor settings from environment, config.json and defaults.

    Malformed numeric values fall back to the default with a warning.
    """
    config = load_config(config_path)
    defaults = EditorSettings()

    default_text = _lookup(config, "default_text")
    node_id_prefix = _lookup(config, "node_id_prefix")

    return EditorSettings(
        default_text=default_text if default_text is not None else defaults.default_text,
        position_width=_as_number(_lookup(config, "position_width"), defaults.position_width, float),
        position_height=_as_number(_lookup(config, "position_height"), defaults.position_height, float),
        node_id_prefix=node_id_prefix or defaults.node_id_prefix,
        port=_as_number(_lookup(config, "port"), defaults.port, int),
    )
