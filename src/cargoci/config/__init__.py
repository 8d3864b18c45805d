"""Config module exports."""

from cargoci.config.loader import load_config
from cargoci.config.models import (
    CargoCIConfig,
    CoverageConfig,
    LoggingConfig,
    PublishConfig,
)

__all__ = [
    "load_config",
    "CargoCIConfig",
    "CoverageConfig",
    "LoggingConfig",
    "PublishConfig",
]
