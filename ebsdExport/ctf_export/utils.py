"""Logging and configuration helpers for the CTF exporter."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ebsdExport.ctf_export.errors import InvalidParameter

CONFIG_SECTION = "ctf_export"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(debug: bool = False, log_config: Optional[Dict[str, Any]] = None) -> None:
    """Configure root logging for command line runs.

    Parameters:
        debug: Force DEBUG level regardless of the configured level.
        log_config: Optional ``logging`` section with ``level``, ``format``
            and ``file_path`` keys.
    """

    log_config = log_config or {}
    if debug:
        level = logging.DEBUG
    else:
        level = getattr(logging, str(log_config.get("level", "INFO")).upper(), logging.INFO)
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    log_file = log_config.get("file_path")
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=level,
        format=log_config.get("format", DEFAULT_LOG_FORMAT),
        handlers=handlers,
        force=True,
    )


def load_export_config(config_path: Path, section: str = CONFIG_SECTION) -> Dict[str, Any]:
    """Load and validate the exporter section of a YAML config file.

    Parameters:
        config_path: Path to the YAML file.
        section: Name of the top-level section to return.

    Returns:
        Configuration dictionary of the section (empty if absent).
    """

    with Path(config_path).open("r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise InvalidParameter(f"Config file {config_path} is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidParameter(f"Config file {config_path} must hold a mapping.")
    config = data.get(section) or {}
    if not isinstance(config, dict):
        raise InvalidParameter(f"Config section '{section}' must be a mapping.")
    config = dict(config)
    for key in ("logging", "debug"):
        if not isinstance(config.get(key) or {}, dict):
            raise InvalidParameter(f"Config entry '{key}' must be a mapping.")
    if "prop_aliases" in config:
        config["prop_aliases"] = _normalize_aliases(config["prop_aliases"])
    return config


def _normalize_aliases(raw: Any) -> Dict[str, List[str]]:
    """Validate a ``prop_aliases`` mapping of field name to alias list."""

    if not isinstance(raw, dict):
        raise InvalidParameter("prop_aliases must be a mapping of field name to alias list.")
    aliases: Dict[str, List[str]] = {}
    for key, value in raw.items():
        if not isinstance(value, list):
            raise InvalidParameter("prop_aliases values must be lists of strings.")
        aliases[str(key)] = [str(item) for item in value]
    return aliases
