"""Settings for declassify.

Defaults live in the model; config/declassify.yaml (or a file passed with
--config) overrides them.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "declassify.yaml"


class DeclassifySettings(BaseModel):
    # Import sources whose default/namespace/named exports count as the framework
    framework_modules: List[str] = Field(default_factory=lambda: ["react"])
    # Unbound identifiers that refer to the framework (UMD global)
    global_names: List[str] = Field(default_factory=lambda: ["React"])
    props_param_name: str = "props"
    extensions: List[str] = Field(
        default_factory=lambda: [".js", ".jsx", ".mjs", ".cjs", ".ts", ".mts", ".cts", ".tsx"]
    )
    skip_directories: List[str] = Field(
        default_factory=lambda: ["node_modules", ".git", "dist", "build", "coverage", ".next", "out"]
    )


_settings: Optional[DeclassifySettings] = None


def load_settings(path: Optional[Union[str, Path]] = None) -> DeclassifySettings:
    """Load settings from a YAML file.

    Args:
        path: YAML file; defaults to config/declassify.yaml

    Returns:
        DeclassifySettings (defaults when the default file is missing)

    Raises:
        FileNotFoundError: When an explicitly given file does not exist
    """
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        if path is not None:
            raise FileNotFoundError(f"Config file not found: {config_path}")
        logger.debug(f"{config_path} not found, using default settings")
        return DeclassifySettings()

    with open(config_path, "r") as f:
        config = yaml.safe_load(f) or {}

    section = config.get("declassify", config)
    logger.debug(f"Loaded settings from {config_path}")
    return DeclassifySettings(**section)


def get_settings() -> DeclassifySettings:
    """Return the cached default settings."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings
