"""Store selection and tuning read from the environment.

Values are read when :meth:`StoreSettings.from_env` is called rather than at
import time so tests and scripts can set the environment first.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

SUPPORTED_BACKENDS = ("memory", "file", "redis")


def env_float(env_var: str, default: float = 0.0) -> float:
    raw_value = os.getenv(env_var)
    if raw_value is None:
        return default

    try:
        value = float(raw_value)
    except ValueError:
        logger.warning(
            "%s is not a valid float (got %r); defaulting to %.2f",
            env_var,
            raw_value,
            default,
        )
        return default

    if value < 0:
        logger.warning("%s cannot be negative; defaulting to %.2f", env_var, default)
        return default

    return value


def canon_prefix(val: str | None) -> str:
    """
    Normalize the Redis key prefix:
      - defaults to 'matchplay:' when unset/empty
      - ensures exactly one trailing colon
    """
    val = (val or "matchplay").strip().rstrip(":")
    return f"{val}:" if val else "matchplay:"


@dataclass(frozen=True)
class StoreSettings:
    backend: str = "memory"
    data_dir: str = "./data"
    redis_url: str = "redis://localhost:6379"
    redis_prefix: str = "matchplay:"
    redis_timeout: float = 5.0

    @classmethod
    def from_env(cls) -> "StoreSettings":
        backend = (os.getenv("STORE_BACKEND") or "memory").strip().lower()
        if backend not in SUPPORTED_BACKENDS:
            raise ValueError(
                f"unsupported STORE_BACKEND {backend!r}; expected one of "
                + ", ".join(SUPPORTED_BACKENDS)
            )
        return cls(
            backend=backend,
            data_dir=os.getenv("DATA_DIR") or "./data",
            redis_url=os.getenv("REDIS_URL") or "redis://localhost:6379",
            redis_prefix=canon_prefix(os.getenv("REDIS_KEY_PREFIX")),
            redis_timeout=env_float("REDIS_TIMEOUT", default=5.0),
        )
