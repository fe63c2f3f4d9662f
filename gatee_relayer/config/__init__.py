"""Configuration utilities for the relayer."""

from .loader import (
    AttestationConfig,
    ConfigurationError,
    DestinationConfig,
    PipelineConfig,
    RelayerConfig,
    load_config,
)

__all__ = [
    "AttestationConfig",
    "ConfigurationError",
    "DestinationConfig",
    "PipelineConfig",
    "RelayerConfig",
    "load_config",
]
