"""
Stockline Core Config — Public API
====================================
Explicit engine configuration (window sizes, batching, field codes).
Doctrine: No ambient global configuration in engine logic.
"""

from core.config.engine import (
    DEFAULT_STATUS_LABELS,
    DEFAULT_TYPE_LABELS,
    EngineConfig,
    RecordFieldMap,
    load_engine_config,
)

__all__ = [
    "DEFAULT_STATUS_LABELS",
    "DEFAULT_TYPE_LABELS",
    "EngineConfig",
    "RecordFieldMap",
    "load_engine_config",
]
