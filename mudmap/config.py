"""Centralized configuration with defaults, file overrides, and CLI overrides.

Priority (highest wins): CLI args > config.json > defaults here
"""

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULTS = {
    # MUD gateway
    "server_url": "ws://localhost:8080",

    # Map dataset
    "map_path": "map.json",

    # Framing
    "flush_delay": 0.25,    # seconds before an unterminated line is shown

    # Display
    "max_lines": 1000,      # scrollback per console

    # Overlay
    "overlay_port": 8889,   # SSE server port for the map view, 0 = disable

    # Debug
    "debug": False,         # enable DEBUG-level logging
}

CONFIG_PATH = Path(__file__).parent.parent / "config.json"


def load_config(cli_args=None, config_path: Path = CONFIG_PATH) -> dict:
    """Load config: defaults → config.json → CLI args."""
    config = dict(DEFAULTS)

    # Layer 2: config.json overrides
    if config_path.exists():
        try:
            with open(config_path) as f:
                file_config = json.load(f)
            config.update({k: v for k, v in file_config.items() if v is not None})
        except (json.JSONDecodeError, OSError, AttributeError) as e:
            logger.warning(f"Failed to load {config_path}: {e}")

    # Layer 3: CLI args override (skip None values)
    if cli_args:
        cli_dict = vars(cli_args) if hasattr(cli_args, '__dict__') else cli_args
        config.update({k: v for k, v in cli_dict.items() if v is not None})

    return config
