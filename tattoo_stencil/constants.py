"""Shared stencil constants used across the pipeline, store, and catalog."""


class StencilConstants:
    """Single source of truth for stencil geometry, tones, and storage layout."""

    # Transform parameter domains
    VALID_ROTATIONS = (0, 90, 180, 270)
    CONTRAST_MIN = 0
    CONTRAST_MAX = 100
    BRIGHTNESS_MIN = -50
    BRIGHTNESS_MAX = 50

    # Tonal mapping
    DEFAULT_CONTRAST = 60
    DEFAULT_BRIGHTNESS = 0
    CONTRAST_FACTOR_MIN = 0.5  # level 0
    CONTRAST_FACTOR_SPAN = 1.5  # level 100 -> 2.0
    CONTRAST_MIDPOINT = 128.0
    BRIGHTNESS_STEP = 255 / 100  # additive shift per brightness level

    # Thermal printers render only pure black/white
    THERMAL_THRESHOLD = 128

    # Derived assets
    THUMBNAIL_SIZE = (200, 200)
    THUMBNAIL_QUALITY = 85
    OUTPUT_FORMAT = "PNG"
    OUTPUT_EXTENSION = "png"
    PREVIEW_FORMAT = "JPEG"
    PREVIEW_EXTENSION = "jpg"

    # Content store namespaces (relative to the store root)
    ORIGINALS_DIR = "originals"
    PROCESSED_DIR = "processed"
    EXPORTS_DIR = "exports"
    CACHE_DIR = "cache"
    EXPORT_RETENTION_DAYS = 7

    # Paper sizes (portrait, mm)
    DEFAULT_PAPER_SIZE = "A4"
    PAPER_SIZES = {
        "A3": {"width_mm": 297, "height_mm": 420},
        "A4": {"width_mm": 210, "height_mm": 297},
        "A5": {"width_mm": 148, "height_mm": 210},
        "Letter": {"width_mm": 215.9, "height_mm": 279.4},
    }

    # Persistence defaults
    DEFAULT_DATA_DIR = "~/.tattoo_stencil"
    METADATA_FILENAME = "stencils.json"
    ASSETS_DIRNAME = "assets"
