"""Content store for stencil image assets

Layout under one base directory:
    originals/   untouched source images (source extension kept)
    processed/   pipeline output (.png)
    exports/     printable exports (pruned after 7 days)
    cache/       thumbnails (.jpg)

Logical paths handed out are relative to the base directory
("processed/<id>.png"), so the root can move without touching metadata.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional
import logging

from ..constants import StencilConstants
from ..errors import AssetNotFoundError, StorageError
from ..utils.temp_files import write_atomic

logger = logging.getLogger(__name__)


class AssetCategory(str, Enum):
    """Logical asset roles and the namespace directory each lives in."""
    ORIGINAL = StencilConstants.ORIGINALS_DIR
    PROCESSED = StencilConstants.PROCESSED_DIR
    EXPORT = StencilConstants.EXPORTS_DIR
    THUMBNAIL = StencilConstants.CACHE_DIR

    @property
    def directory(self) -> str:
        return self.value

    @property
    def default_extension(self) -> str:
        if self is AssetCategory.THUMBNAIL:
            return StencilConstants.PREVIEW_EXTENSION
        return StencilConstants.OUTPUT_EXTENSION


NAMESPACES = (
    StencilConstants.ORIGINALS_DIR,
    StencilConstants.PROCESSED_DIR,
    StencilConstants.EXPORTS_DIR,
    StencilConstants.CACHE_DIR,
)


class ContentStore:
    """File-backed asset storage keyed by category and stencil id.

    Writes are atomic (stage + replace). Missing files raise
    AssetNotFoundError on read and are ignored on delete; any other OS
    failure surfaces as StorageError.
    """

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir).expanduser()
        self._initialized = False

    def initialize(self) -> None:
        """Create the namespace directories. Safe to call on every start."""
        if self._initialized:
            return
        try:
            for name in NAMESPACES:
                (self.base_dir / name).mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot initialize content store at {self.base_dir}: {exc}") from exc
        self._initialized = True
        logger.info(f"Content store initialized at: {self.base_dir}")

    @staticmethod
    def filename_for(category: AssetCategory, stencil_id: str, extension: Optional[str] = None) -> str:
        ext = (extension or category.default_extension).lstrip(".").lower()
        if category is AssetCategory.THUMBNAIL:
            return f"{stencil_id}-thumb.{ext}"
        return f"{stencil_id}.{ext}"

    def save(self, category: AssetCategory, stencil_id: str, data: bytes, extension: Optional[str] = None) -> str:
        """Persist bytes for a stencil and return the logical path.

        Args:
            category: Asset role (decides the namespace directory)
            stencil_id: Stencil the asset belongs to
            data: Raw file bytes
            extension: File extension; defaults per category (png / jpg)
        """
        category = AssetCategory(category)
        logical_path = f"{category.directory}/{self.filename_for(category, stencil_id, extension)}"
        self.write(logical_path, data)
        return logical_path

    def write(self, logical_path: str, data: bytes) -> None:
        """Overwrite the asset at logical_path in place."""
        self.initialize()
        target = self.resolve(logical_path)
        try:
            write_atomic(target, data)
        except OSError as exc:
            raise StorageError(f"Failed to write {logical_path}: {exc}") from exc
        logger.debug(f"Saved {logical_path} ({len(data)} bytes)")

    def read(self, logical_path: str) -> bytes:
        target = self.resolve(logical_path)
        try:
            return target.read_bytes()
        except FileNotFoundError as exc:
            raise AssetNotFoundError(f"Asset not found: {logical_path}") from exc
        except OSError as exc:
            raise StorageError(f"Failed to read {logical_path}: {exc}") from exc

    def exists(self, logical_path: str) -> bool:
        return self.resolve(logical_path).is_file()

    def delete(self, logical_path: str) -> None:
        """Remove an asset; a missing asset is not an error."""
        target = self.resolve(logical_path)
        try:
            target.unlink()
        except FileNotFoundError:
            logger.debug(f"Delete skipped, already gone: {logical_path}")
            return
        except OSError as exc:
            raise StorageError(f"Failed to delete {logical_path}: {exc}") from exc
        logger.debug(f"Deleted: {logical_path}")

    def delete_many(self, logical_paths: List[str]) -> None:
        for path in logical_paths:
            self.delete(path)

    def list(self, category: AssetCategory) -> List[str]:
        """Logical paths of every asset in a category (staging files excluded)."""
        directory = self.base_dir / AssetCategory(category).directory
        if not directory.is_dir():
            return []
        return sorted(
            f"{directory.name}/{entry.name}"
            for entry in directory.iterdir()
            if entry.is_file() and not entry.name.startswith(".")
        )

    def size_by_category(self) -> Dict[str, int]:
        """Bytes used per namespace directory."""
        return {name: self._directory_size(self.base_dir / name) for name in NAMESPACES}

    def prune_expired(self, max_age: Optional[timedelta] = None) -> None:
        """Delete export files older than max_age (default 7 days).

        Fire-and-forget cleanup: files that vanish or refuse deletion midway
        are logged and skipped.
        """
        max_age = max_age or timedelta(days=StencilConstants.EXPORT_RETENTION_DAYS)
        exports_dir = self.base_dir / StencilConstants.EXPORTS_DIR
        if not exports_dir.is_dir():
            return

        now = datetime.now(timezone.utc)
        deleted_count = 0
        for entry in exports_dir.iterdir():
            if not entry.is_file():
                continue
            try:
                modified = datetime.fromtimestamp(entry.stat().st_mtime, timezone.utc)
                if now - modified > max_age:
                    entry.unlink()
                    deleted_count += 1
            except FileNotFoundError:
                continue
            except OSError as exc:
                logger.warning(f"Could not prune export {entry.name}: {exc}")

        if deleted_count > 0:
            logger.info(f"Cleaned up {deleted_count} old export files")

    def resolve(self, logical_path: str) -> Path:
        """Absolute path for a logical path, which must stay inside the store."""
        if not logical_path:
            raise StorageError("Logical path is required")
        root = self.base_dir.resolve()
        path = (root / logical_path).resolve()
        if root not in path.parents:
            raise StorageError(f"Path escapes content store: {logical_path}")
        return path

    @staticmethod
    def _directory_size(directory: Path) -> int:
        if not directory.is_dir():
            return 0
        size = 0
        for entry in directory.rglob("*"):
            try:
                if entry.is_file():
                    size += entry.stat().st_size
            except FileNotFoundError:
                continue
        return size
