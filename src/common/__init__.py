# ABOUTME: Makes the shared common package importable across calculators and scorers.
# ABOUTME: Re-exports schema types, config loading, and payload decoding for convenience.

from .config import DEFAULT_CONFIG, EngineConfig, load_engine_config
from .errors import ContractViolation, MetricsEngineError, PayloadError
from .payloads import PayloadKind, decode_payload, normalize
from .schemas import MetricEntry, MetricResult, ScopedMetrics

__all__ = [
    "DEFAULT_CONFIG",
    "EngineConfig",
    "load_engine_config",
    "ContractViolation",
    "MetricsEngineError",
    "PayloadError",
    "PayloadKind",
    "decode_payload",
    "normalize",
    "MetricEntry",
    "MetricResult",
    "ScopedMetrics",
]
