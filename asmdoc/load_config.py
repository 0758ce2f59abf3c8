"""Logic for loading and merging configuration files."""

import copy
import logging
from pathlib import Path
from typing import Any

import yaml

from asmdoc.deep_merge import deep_merge
from asmdoc.errors import LoadError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict[str, Any] = {
    "output": {
        "initial_level": 1,
    },
    "metadata_attributes": [
        "System.Reflection.AssemblyTitleAttribute",
        "System.Reflection.AssemblyDescriptionAttribute",
        "System.Reflection.AssemblyCompanyAttribute",
        "System.Reflection.AssemblyProductAttribute",
        "System.Reflection.AssemblyCopyrightAttribute",
        "System.Reflection.AssemblyTrademarkAttribute",
        "System.Reflection.AssemblyInformationalVersionAttribute",
        "System.Reflection.AssemblyFileVersionAttribute",
        "System.Runtime.Versioning.TargetFrameworkAttribute",
    ],
    "search_dirs": [],
}


def load_config(path: str | Path | None = None) -> dict[str, Any]:
    """Load configuration from a YAML file and merge it with defaults."""
    config = copy.deepcopy(DEFAULT_CONFIG)
    if path:
        p = Path(path)
        if p.exists():
            try:
                user_config = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
            except yaml.YAMLError as e:
                raise LoadError(f"Invalid configuration: {e}", p) from e
            if not isinstance(user_config, dict):
                raise LoadError("Configuration must be a mapping", p)
            config = deep_merge(config, user_config)
            logger.debug("Configuration loaded from %s", p)
        else:
            logger.warning("Configuration file not found: %s", p)
    return config
