#!/usr/bin/env python3
"""
Environment-driven CoreConfig for the example scripts.

A wallet service embedding the core decides where its settings come from;
these examples read ``EVM_CORE_*`` variables, e.g.
``EVM_CORE_DERIVATION_WORKERS=4``.
"""
import os
from typing import Any, Dict, Mapping, Optional

from evm_signing_core import CoreConfig

ENV_PREFIX = "EVM_CORE_"


def config_from_env(environ: Optional[Mapping[str, str]] = None) -> CoreConfig:
    """
    Build a CoreConfig from ``EVM_CORE_<FIELD>`` variables.

    Unset or empty variables keep their defaults.
    """
    if environ is None:
        environ = os.environ

    values: Dict[str, Any] = {}
    for name in CoreConfig.model_fields:
        raw = environ.get(ENV_PREFIX + name.upper())
        if raw is None or raw == "":
            continue
        if name == "message_compat_rewrite":
            values[name] = raw.strip().lower() in ("1", "true", "yes", "on")
        else:
            values[name] = raw
    return CoreConfig.model_validate(values)


if __name__ == "__main__":
    print(config_from_env())
