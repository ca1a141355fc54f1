"""Scanner lifecycle state, owned by the composition root."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .detection_lock import DetectionLock


class ModuleAvailability(Enum):
    UNKNOWN = "unknown"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


@dataclass(slots=True)
class ScannerState:
    """Memory-only state shared by every controller operation.

    ``module_available`` is resolved once by the capability probe and is
    otherwise only ever downgraded to UNAVAILABLE.
    """

    module_available: ModuleAvailability = ModuleAvailability.UNKNOWN
    initialized: bool = False
    scanning: bool = False
    detection: DetectionLock = field(default_factory=DetectionLock)

    @property
    def processing(self) -> bool:
        return self.detection.busy

    @property
    def unavailable(self) -> bool:
        return self.module_available is ModuleAvailability.UNAVAILABLE

    def snapshot(self) -> dict:
        return {
            "module_available": self.module_available.value,
            "initialized": self.initialized,
            "scanning": self.scanning,
            "processing": self.processing,
            "detection": self.detection.state.value,
        }


__all__ = ["ModuleAvailability", "ScannerState"]
