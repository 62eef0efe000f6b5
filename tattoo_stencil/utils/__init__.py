"""Shared utilities"""

from .validators import safe_int, safe_float, parse_bool, normalize_rotation, require_positive, validate_paper_size
from .timestamps import utc_now, iso_timestamp, parse_timestamp, default_stencil_name

__all__ = [
    'safe_int', 'safe_float', 'parse_bool', 'normalize_rotation', 'require_positive',
    'validate_paper_size', 'utc_now', 'iso_timestamp', 'parse_timestamp', 'default_stencil_name',
]
