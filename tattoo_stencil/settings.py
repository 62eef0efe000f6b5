"""Application settings: printer defaults, UI defaults, and feature flags"""

from __future__ import annotations
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, Mapping, Optional
import logging
import os

from .constants import StencilConstants
from .utils.validators import parse_bool, safe_float, safe_int, validate_paper_size

logger = logging.getLogger(__name__)

ENV_PREFIX = "STENCIL_"


@dataclass
class AppSettings:
    """Singleton configuration record.

    Only the printer and default-value fields steer the catalog; the UI
    preferences and feature flags are carried for the app shell.
    """
    # Printer settings
    default_paper_size: str = StencilConstants.DEFAULT_PAPER_SIZE
    thermal_printer_mode: bool = False
    auto_mirror_for_thermal: bool = True

    # Default values
    default_contrast_level: int = StencilConstants.DEFAULT_CONTRAST
    default_stencil_width_cm: float = 12.0

    # UI preferences
    dark_mode_enabled: bool = True
    show_ruler_overlay: bool = True
    add_scale_test_pattern: bool = True

    # Feature flags
    enable_tiled_print: bool = False
    enable_auto_save: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AppSettings":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppSettings":
        """Build settings from defaults overridden by STENCIL_* variables.

        e.g. STENCIL_THERMAL_PRINTER_MODE=true, STENCIL_DEFAULT_CONTRAST_LEVEL=75
        """
        environ = os.environ if environ is None else environ
        defaults = cls()
        values: Dict[str, Any] = {}

        for f in fields(cls):
            raw = environ.get(f"{ENV_PREFIX}{f.name.upper()}")
            if raw is None:
                continue
            default = getattr(defaults, f.name)
            if isinstance(default, bool):
                values[f.name] = parse_bool(raw, default)
            elif isinstance(default, int):
                values[f.name] = safe_int(raw, f.name, default=default)
            elif isinstance(default, float):
                values[f.name] = safe_float(raw, f.name, min_value=0.1, default=default)
            else:
                values[f.name] = raw

        settings = cls(**values)
        settings.default_contrast_level = safe_int(
            settings.default_contrast_level, "default_contrast_level",
            StencilConstants.CONTRAST_MIN, StencilConstants.CONTRAST_MAX,
        )
        validate_paper_size(settings.default_paper_size)
        if values:
            logger.debug(f"Settings overridden from environment: {sorted(values)}")
        return settings
