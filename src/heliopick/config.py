"""Picking settings with simple JSON persistence."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional

from .geometry import DEFAULT_RADIUS_FRACTION, DiskGeometry
from .transform import DEFAULT_LIMB_TOLERANCE, ProjectionModel

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    # Disk estimate when no header/sidecar geometry exists
    FALLBACK_RADIUS_FRACTION: float = DEFAULT_RADIUS_FRACTION
    PREFER_HEADER: bool = True

    # Pick acceptance
    LIMB_TOLERANCE: float = DEFAULT_LIMB_TOLERANCE
    BOUNDARY_CHECK: bool = True
    PROJECTION: str = ProjectionModel.LINEAR.value

    # Manual corrections (original image pixels)
    RADIUS_CORRECTION: float = 1.0
    CENTER_X_OFFSET: float = 0.0
    CENTER_Y_OFFSET: float = 0.0

    @staticmethod
    def default_path() -> Path:
        return Path.home() / ".heliopick.json"

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Settings":
        cfg = cls()
        cfg_path = Path(path) if path else cls.default_path()
        if not cfg_path.exists():
            return cfg

        try:
            data = json.loads(cfg_path.read_text())
        except (OSError, ValueError):
            logger.exception("Failed to read settings file: %s", cfg_path)
            return cfg

        for f in fields(cfg):
            if f.name not in data:
                continue
            raw = data[f.name]
            try:
                if f.type in (bool, "bool"):
                    if not isinstance(raw, bool):
                        raise TypeError(raw)
                    val = raw
                elif f.type in (float, "float"):
                    val = float(raw)
                else:
                    val = str(raw)
                setattr(cfg, f.name, val)
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid setting value for %s", f.name)

        cfg.normalize()
        return cfg

    def save(self, path: Optional[Path] = None) -> None:
        cfg_path = Path(path) if path else self.default_path()
        cfg_path.write_text(json.dumps(asdict(self), indent=2, sort_keys=True))

    def normalize(self) -> None:
        if self.FALLBACK_RADIUS_FRACTION <= 0:
            logger.warning("FALLBACK_RADIUS_FRACTION must be > 0; using %s", DEFAULT_RADIUS_FRACTION)
            self.FALLBACK_RADIUS_FRACTION = DEFAULT_RADIUS_FRACTION
        if self.LIMB_TOLERANCE < 1.0:
            self.LIMB_TOLERANCE = 1.0
        if self.RADIUS_CORRECTION <= 0:
            logger.warning("RADIUS_CORRECTION must be > 0; resetting to 1.0")
            self.RADIUS_CORRECTION = 1.0
        if self.PROJECTION not in {m.value for m in ProjectionModel}:
            logger.warning("Unknown projection %r; using linear", self.PROJECTION)
            self.PROJECTION = ProjectionModel.LINEAR.value

    def correct(self, geometry: DiskGeometry) -> DiskGeometry:
        """Derived geometry with the manual corrections applied."""
        return geometry.corrected(self.RADIUS_CORRECTION, self.CENTER_X_OFFSET, self.CENTER_Y_OFFSET)
