"""
Lint Configuration Loader

Reads the packaged default.yaml (or the file named by DECLCOP_CONFIG) and
validates it into a LintConfig. Parsed files are cached per path; the
validated default is shared by every lint call since it is never mutated.
"""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from declcop.models import LintConfig
from declcop.utils.errors import ConfigError

# Load environment variables explicitly
load_dotenv()

logger = logging.getLogger("declcop.config")

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "default.yaml"

# YAML file cache: resolved path -> parsed dict
_yaml_cache: dict = {}


def _load_yaml(path: Path) -> dict:
    """Load and cache a YAML file."""
    key = str(path.resolve())
    if key in _yaml_cache:
        return _yaml_cache[key]
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    _yaml_cache[key] = data
    return data


def load_lint_config(path: Optional[Path] = None) -> LintConfig:
    """Load and validate a lint configuration file (defaults to the packaged one)."""
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    data = _load_yaml(config_path)
    try:
        config = LintConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e

    families = [f.name for f in config.families]
    logger.info(f"[Config] Loaded {config_path.name}: families={families}, rules={len(config.rules)}")
    return config


_config_instance: Optional[LintConfig] = None


def get_lint_config() -> LintConfig:
    """Get the shared configuration, honoring DECLCOP_CONFIG when set"""
    global _config_instance
    if _config_instance is None:
        override = os.getenv("DECLCOP_CONFIG")
        _config_instance = load_lint_config(Path(override) if override else None)
    return _config_instance
