"""Stencil error hierarchy.

Every exception takes a single message argument so it survives the trip
back from a process-pool worker.
"""


class StencilError(Exception):
    """Base class for stencil errors."""


class DecodeError(StencilError):
    """Source bytes are not a decodable raster image (or have zero area)."""


InvalidImageError = DecodeError


class NotFoundError(StencilError):
    """A stencil id has no record in the catalog."""


class AssetNotFoundError(NotFoundError):
    """A logical path has no asset in the content store."""


class StorageError(StencilError):
    """Reading, writing, or deleting persisted data failed."""


class InvalidParameterError(StencilError, ValueError):
    """A stencil parameter is outside its accepted domain."""
