"""Environment values exposed to scripts and the runtime settings read from them."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

from sonoplug.kube_module import Module

ENV_PREFIX = "SONOLARK_"
ENV_KEY_SONOBUOY = "SONOBUOY"
ENV_KEY_SONOBUOY_CONFIG_DIR = "SONOBUOY_CONFIG_DIR"
DEFAULT_SCRIPT_NAME = "script.star"

ENV_KEYS = (ENV_KEY_SONOBUOY, ENV_KEY_SONOBUOY_CONFIG_DIR)

_log = logging.getLogger(__name__)


def new_api(environ: Mapping[str, str] | None = None) -> Module:
    """Return the "env" module holding every SONOLARK_<name> variable as a lower-case <name>."""
    if environ is None:
        environ = os.environ
    members = {
        key[len(ENV_PREFIX):].lower(): value
        for key, value in environ.items()
        if key.startswith(ENV_PREFIX)
    }
    return Module("env", members)


def get_envs(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Capture the environment variables of interest, unset ones as empty strings."""
    if environ is None:
        environ = os.environ
    return {key: environ.get(key, "") for key in ENV_KEYS}


def default_script_name(env: Mapping[str, str]) -> str:
    """Return the default script path inside the configuration directory."""
    directory = env.get(ENV_KEY_SONOBUOY_CONFIG_DIR, "")
    if not directory:
        return DEFAULT_SCRIPT_NAME
    return os.path.normpath(os.path.join(directory, DEFAULT_SCRIPT_NAME))


def running_via_sonobuoy(env: Mapping[str, str]) -> bool:
    """Report whether SONOBUOY is "true", meaning the run happens inside Sonobuoy."""
    value = env.get(ENV_KEY_SONOBUOY, "")
    _log.debug("Checking if env.SONOBUOY==true indicating running via Sonobuoy. Value is: %r", value)
    return value == "true"