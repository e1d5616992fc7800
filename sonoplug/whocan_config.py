"""Configuration for who-can queries, read from the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

import yaml

CONFIG_ENV = "WHO_CAN_CONFIG"

_NULL_SCALARS = frozenset({"", "~", "null", "Null", "NULL"})


@dataclass
class WhoCanConfig:
    """Settings that shape the who-can queries."""

    namespaces: list[str] = field(default_factory=list)


def _parse_namespaces(value: object) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        if value in _NULL_SCALARS:
            return []
        raise ValueError(f"namespaces must be a list of strings, got scalar {value!r}")
    if not isinstance(value, list):
        raise ValueError(f"namespaces must be a list of strings, got {type(value).__name__}")
    namespaces = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"namespace entries must be strings, got {type(item).__name__}")
        namespaces.append(item)
    return namespaces


def load_config_from_env(environ: Mapping[str, str] | None = None) -> WhoCanConfig:
    """Build a WhoCanConfig from the YAML held in WHO_CAN_CONFIG.

    An unset or empty variable yields the default configuration.
    Malformed YAML or a document of the wrong shape raises ValueError.
    """
    if environ is None:
        environ = os.environ
    raw = environ.get(CONFIG_ENV, "")
    if raw == "":
        return WhoCanConfig()

    try:
        # The base loader keeps every scalar as its source text, so numeric
        # namespace names stay strings.
        document = yaml.load(raw, Loader=yaml.BaseLoader)
    except yaml.YAMLError as err:
        raise ValueError(f"invalid {CONFIG_ENV} document: {err}") from err

    if document is None:
        return WhoCanConfig()
    if not isinstance(document, dict):
        raise ValueError(f"{CONFIG_ENV} must hold a mapping, got {type(document).__name__}")

    return WhoCanConfig(namespaces=_parse_namespaces(document.get("namespaces")))