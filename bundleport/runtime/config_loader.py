"""Helpers for loading import configuration from TOML/JSON sources.

This module provides a single entry point `load_import_config`
that accepts various configuration sources:

* None -> default ImportConfig
* dict -> ImportConfig.from_dict
* Path / path-like string -> load .toml/.json from filesystem
* Inline JSON/TOML strings
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional, Union

from bundleport.config import ImportConfig

logger = logging.getLogger("bundleport.runtime.config_loader")

ConfigSource = Union[str, Path, Dict[str, Any], None]

# Tables that may wrap the settings, e.g. [tool.bundleport] in pyproject-style files
_WRAPPER_KEYS = (("tool", "bundleport"), ("bundleport",))


def _unwrap(data: Dict[str, Any]) -> Dict[str, Any]:
    for keys in _WRAPPER_KEYS:
        section: Any = data
        for key in keys:
            if not isinstance(section, dict) or key not in section:
                section = None
                break
            section = section[key]
        if isinstance(section, dict):
            return section
    return data


def load_import_config(source: ConfigSource) -> ImportConfig:
    """Load ImportConfig from various configuration sources.

    Args:
        source: One of:
            * None: returns ImportConfig.default()
            * dict: treated as already-parsed configuration mapping
            * str/Path: either a filesystem path to a .toml/.json file,
              or an inline TOML/JSON string (auto-detected)

    Returns:
        ImportConfig instance.

    Raises:
        ValueError: If the source cannot be parsed or is not a mapping.
        pydantic.ValidationError: If the settings are invalid.
    """
    if source is None:
        logger.debug("No config source provided; using default ImportConfig")
        return ImportConfig.default()

    if isinstance(source, dict):
        logger.debug("Loading ImportConfig from provided dict")
        return ImportConfig.from_dict(_unwrap(source))

    if isinstance(source, (str, Path)):
        path = Path(source)
        text: Optional[str] = None
        fmt: Optional[str] = None

        if path.is_file():
            text = path.read_text(encoding="utf-8")
            suffix = path.suffix.lower()
            if suffix in {".toml", ".tml"}:
                fmt = "toml"
            elif suffix == ".json":
                fmt = "json"
            else:
                stripped = text.lstrip()
                fmt = "json" if stripped.startswith(("{", "[")) else "toml"
            logger.info("Loading configuration from file: %s (fmt=%s)", path, fmt)
        else:
            text = str(source)
            stripped = text.lstrip()
            fmt = "json" if stripped.startswith(("{", "[")) else "toml"
            logger.info("Loading configuration from inline %s string", fmt)

        try:
            data = json.loads(text) if fmt == "json" else tomllib.loads(text)
        except (json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
            raise ValueError(f"Unable to parse {fmt} configuration: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Top-level configuration must be a mapping/dict")

        return ImportConfig.from_dict(_unwrap(data))

    raise TypeError(f"Unsupported config source type: {type(source)!r}")


__all__ = ["load_import_config"]
