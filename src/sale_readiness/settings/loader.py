"""Settings helpers to centralize configuration access."""
from __future__ import annotations

from typing import Optional

from sale_readiness.domain.models.policy import PoolingScope
from sale_readiness.settings.config import Config


def load_settings(
    debug_override: Optional[bool] = None,
    pooling_override: Optional[PoolingScope] = None,
) -> Config:
    """Return a Config instance, applying optional runtime overrides."""
    config = Config.from_env()
    if debug_override is not None:
        config.debug = debug_override
    if pooling_override is not None:
        config.pooling_scope = pooling_override
    return config
