"""Stencil data structures

Separates the persisted record, the partial-update patch, and the pipeline
parameters so each can be built, validated, and serialized on its own.
"""

from __future__ import annotations
from dataclasses import dataclass, asdict, fields, replace
from datetime import datetime
from typing import Any, Dict, Optional

from .constants import StencilConstants
from .utils.timestamps import iso_timestamp, parse_timestamp
from .utils.validators import (
    normalize_rotation,
    parse_bool,
    require_positive,
    safe_int,
    validate_paper_size,
)


@dataclass(frozen=True)
class TransformParams:
    """Parameters for one pipeline run.

    Frozen and built from plain values so it can be shipped to a worker
    process unchanged.
    """
    rotation_degrees: int = 0
    mirror_h: bool = False
    mirror_v: bool = False
    brightness_level: int = StencilConstants.DEFAULT_BRIGHTNESS
    contrast_level: int = StencilConstants.DEFAULT_CONTRAST
    thermal_mode: bool = False

    def __post_init__(self):
        # Frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "rotation_degrees", normalize_rotation(self.rotation_degrees))
        object.__setattr__(self, "contrast_level", safe_int(
            self.contrast_level, "contrast_level",
            StencilConstants.CONTRAST_MIN, StencilConstants.CONTRAST_MAX,
        ))
        object.__setattr__(self, "brightness_level", safe_int(
            self.brightness_level, "brightness_level",
            StencilConstants.BRIGHTNESS_MIN, StencilConstants.BRIGHTNESS_MAX,
        ))
        object.__setattr__(self, "mirror_h", bool(self.mirror_h))
        object.__setattr__(self, "mirror_v", bool(self.mirror_v))
        object.__setattr__(self, "thermal_mode", bool(self.thermal_mode))

    @property
    def contrast_factor(self) -> float:
        """Multiplicative contrast: level 0 -> 0.5, level 100 -> 2.0."""
        return (StencilConstants.CONTRAST_FACTOR_MIN
                + (self.contrast_level / 100) * StencilConstants.CONTRAST_FACTOR_SPAN)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class StencilRecord:
    """Metadata for one stencil project.

    Paths are logical references into the content store. The original asset
    is the only input ever fed to the pipeline; the processed asset is
    rewritten in place on every reprocess.
    """
    id: str
    name: str
    created_at: datetime
    last_modified_at: datetime
    original_image_path: str
    processed_image_path: str
    width_cm: float
    height_cm: float
    thumbnail_path: Optional[str] = None
    is_mirrored_h: bool = False
    is_mirrored_v: bool = False
    rotation_degrees: int = 0
    contrast_level: int = StencilConstants.DEFAULT_CONTRAST
    brightness_level: int = StencilConstants.DEFAULT_BRIGHTNESS
    paper_size: str = StencilConstants.DEFAULT_PAPER_SIZE
    last_exported_at: Optional[datetime] = None
    client_note: Optional[str] = None
    is_favorite: bool = False

    @property
    def aspect_ratio(self) -> float:
        """Height over width, as captured when the stencil was created."""
        return self.height_cm / self.width_cm

    @property
    def asset_paths(self) -> list[str]:
        """Every asset the record references (original, processed, thumbnail)."""
        paths = [self.original_image_path, self.processed_image_path]
        if self.thumbnail_path is not None:
            paths.append(self.thumbnail_path)
        return paths

    def transform_params(self, thermal_mode: bool = False) -> TransformParams:
        return TransformParams(
            rotation_degrees=self.rotation_degrees,
            mirror_h=self.is_mirrored_h,
            mirror_v=self.is_mirrored_v,
            brightness_level=self.brightness_level,
            contrast_level=self.contrast_level,
            thermal_mode=thermal_mode,
        )

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on name or client note."""
        needle = query.lower()
        if needle in self.name.lower():
            return True
        return self.client_note is not None and needle in self.client_note.lower()

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a field-name keyed mapping (JSON-safe)."""
        data = asdict(self)
        for key in ("created_at", "last_modified_at", "last_exported_at"):
            if data[key] is not None:
                data[key] = iso_timestamp(data[key])
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StencilRecord":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        for key in ("created_at", "last_modified_at", "last_exported_at"):
            if isinstance(values.get(key), str):
                values[key] = parse_timestamp(values[key])
        return cls(**values)


@dataclass
class StencilPatch:
    """Partial update for a stencil: None means "leave unchanged".

    A consequence of that convention: a patch cannot clear client_note back
    to None, only replace it.
    """
    name: Optional[str] = None
    width_cm: Optional[float] = None
    is_mirrored_h: Optional[bool] = None
    is_mirrored_v: Optional[bool] = None
    rotation_degrees: Optional[int] = None
    contrast_level: Optional[int] = None
    brightness_level: Optional[int] = None
    paper_size: Optional[str] = None
    client_note: Optional[str] = None
    is_favorite: Optional[bool] = None

    # Fields whose change means the processed asset must be regenerated
    REPROCESS_FIELDS = (
        "is_mirrored_h",
        "is_mirrored_v",
        "rotation_degrees",
        "contrast_level",
        "brightness_level",
    )

    def changes(self) -> Dict[str, Any]:
        """Only the supplied fields."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}

    @property
    def needs_reprocessing(self) -> bool:
        return any(getattr(self, name) is not None for name in self.REPROCESS_FIELDS)

    def validated(self) -> "StencilPatch":
        """Return a copy with every supplied field checked and normalized.

        Raises:
            InvalidParameterError: On a rotation that is not a right angle,
                a non-positive width, or an unknown paper size
        """
        updates: Dict[str, Any] = {}
        if self.width_cm is not None:
            updates["width_cm"] = require_positive(self.width_cm, "width_cm")
        if self.rotation_degrees is not None:
            updates["rotation_degrees"] = normalize_rotation(self.rotation_degrees)
        if self.contrast_level is not None:
            updates["contrast_level"] = safe_int(
                self.contrast_level, "contrast_level",
                StencilConstants.CONTRAST_MIN, StencilConstants.CONTRAST_MAX,
            )
        if self.brightness_level is not None:
            updates["brightness_level"] = safe_int(
                self.brightness_level, "brightness_level",
                StencilConstants.BRIGHTNESS_MIN, StencilConstants.BRIGHTNESS_MAX,
            )
        if self.paper_size is not None:
            updates["paper_size"] = validate_paper_size(self.paper_size)
        for flag in ("is_mirrored_h", "is_mirrored_v", "is_favorite"):
            if getattr(self, flag) is not None:
                updates[flag] = parse_bool(getattr(self, flag))
        return replace(self, **updates)
