"""Tattoo stencil library - photo to printable stencil.

Pure-Python transform pipeline plus a catalog of stencil projects.
Uses store abstractions. No UI. No printing.
"""

from .errors import (
    StencilError,
    DecodeError,
    InvalidImageError,
    NotFoundError,
    AssetNotFoundError,
    StorageError,
    InvalidParameterError,
)
from .models import StencilRecord, StencilPatch, TransformParams
from .settings import AppSettings
from .metadata import MetadataStoreBase, MemoryMetadataStore, JsonMetadataStore
from .services import ContentStore, AssetCategory, PipelineWorker, process_stencil
from .repository import StencilCatalog, open_catalog

__all__ = [
    "StencilError", "DecodeError", "InvalidImageError", "NotFoundError", "AssetNotFoundError",
    "StorageError", "InvalidParameterError", "StencilRecord", "StencilPatch", "TransformParams",
    "AppSettings", "MetadataStoreBase", "MemoryMetadataStore", "JsonMetadataStore", "ContentStore",
    "AssetCategory", "PipelineWorker", "process_stencil", "StencilCatalog", "open_catalog",
]
__version__ = "0.1.0"
