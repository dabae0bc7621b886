"""Configuration persistence manager for the image toolbox.

This module handles loading and saving of tracing and render settings
to/from a JSON file.
"""

import json
import logging
from dataclasses import asdict, fields
from pathlib import Path
from typing import Optional, Tuple

from models import CONFIG_FILE, RenderConfig, TracingConfig

logger = logging.getLogger(__name__)


def _update(config, data: dict):
    """Copy known keys from data onto a dataclass instance (fallback to defaults)."""
    for field in fields(config):
        if field.name in data:
            setattr(config, field.name, data[field.name])
    return config


class ConfigManager:
    """Handles loading and saving of tracing and render configuration."""

    def __init__(self, config_path: Path = CONFIG_FILE):
        """Initialize config manager.

        Args:
            config_path: Path to configuration file (defaults to ~/.imagetoolbox_config.json)
        """
        self.config_path = Path(config_path)

    def load(self) -> Tuple[TracingConfig, RenderConfig]:
        """Load configuration from file, returning defaults if not found.

        Unknown keys are ignored and out-of-range values are clamped.

        Returns:
            Tuple of (TracingConfig, RenderConfig)
        """
        tracing = TracingConfig()
        render = RenderConfig()

        if not self.config_path.exists():
            return tracing, render

        try:
            with open(self.config_path, "r") as f:
                data = json.load(f)
            _update(tracing, data.get("tracing", {}))
            _update(render, data.get("render", {}))
            tracing = tracing.clamped()
            render = render.clamped()
            logger.info("Loaded configuration from %s", self.config_path)
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning("Could not load config file %s: %s", self.config_path, e)
            return TracingConfig(), RenderConfig()

        return tracing, render

    def save(
        self, tracing: TracingConfig, render: RenderConfig
    ) -> Tuple[bool, Optional[str]]:
        """Save configuration to file.

        Args:
            tracing: TracingConfig to save
            render: RenderConfig to save

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        try:
            with open(self.config_path, "w") as f:
                json.dump({"tracing": asdict(tracing), "render": asdict(render)}, f, indent=2)
            return True, None
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Could not save config file %s: %s", self.config_path, e)
            return False, str(e)
