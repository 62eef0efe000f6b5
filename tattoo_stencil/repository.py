"""Stencil catalog: metadata records tied to their image assets.

Each stencil owns three assets in the content store (original, processed,
thumbnail) and one record in the metadata store. Assets are always written
before the record that points at them, and removed before the record is.

Operations on the same stencil id must be serialized by the caller; there
is no per-id locking here.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import Callable, List, Optional
from uuid import uuid4

from .constants import StencilConstants
from .errors import AssetNotFoundError, NotFoundError, StorageError
from .metadata import JsonMetadataStore, MetadataStoreBase
from .models import StencilPatch, StencilRecord, TransformParams
from .services.storage_service import AssetCategory, ContentStore
from .services.worker_service import PipelineWorker
from .settings import AppSettings
from .utils.timestamps import default_stencil_name, utc_now
from .utils.validators import require_positive

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024


class StencilCatalog:
    """Repository for stencil projects (metadata store + content store).

    Args:
        metadata: Persistent map of stencil id -> record dict
        content: Asset storage
        worker: Off-thread executor for rendering and file I/O
        settings: Defaults for new stencils and thermal mode
        clock: Source of "now" (timezone-aware)
        id_factory: Source of new stencil ids
    """

    def __init__(
        self,
        metadata: MetadataStoreBase,
        content: ContentStore,
        worker: PipelineWorker,
        settings: Optional[AppSettings] = None,
        clock: Callable = utc_now,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self.metadata = metadata
        self.content = content
        self.worker = worker
        self.settings = settings or AppSettings()
        self._clock = clock
        self._new_id = id_factory or (lambda: str(uuid4()))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_stencil(self, stencil_id: str) -> Optional[StencilRecord]:
        data = self.metadata.get(stencil_id)
        return StencilRecord.from_dict(data) if data is not None else None

    def get_all_stencils(self, favorites_first: bool = False) -> List[StencilRecord]:
        """All stencils, most recently modified first.

        With favorites_first, favorites come before everything else; each
        partition keeps the recency order. Equal timestamps fall back to id.
        """
        return self._ordered(self._records(), favorites_first)

    def search_stencils(self, query: str) -> List[StencilRecord]:
        """Case-insensitive substring search over name and client note.

        The query is matched as given; an empty or all-whitespace query
        returns every stencil.
        """
        if not query or not query.strip():
            return self.get_all_stencils()
        return self._ordered([r for r in self._records() if r.matches(query)])

    async def get_processed_image(self, stencil_id: str) -> bytes:
        """Current pipeline output for a stencil (PNG bytes)."""
        record = self._require(stencil_id)
        return await self.worker.run_io(self.content.read, record.processed_image_path)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_stencil(self, source_bytes: bytes, width_cm: float, name: Optional[str] = None) -> StencilRecord:
        """Create a stencil from a source photo.

        Renders the thumbnail and the initial processed image before any
        write, so an undecodable source leaves nothing behind.

        Raises:
            DecodeError: If source_bytes is not a raster image
            InvalidParameterError: If width_cm <= 0
            StorageError: If an asset or the record cannot be written
        """
        width_cm = require_positive(width_cm, "width_cm")
        try:
            info = await self.worker.probe(source_bytes)
            params = TransformParams(
                contrast_level=self.settings.default_contrast_level,
                thermal_mode=self.settings.thermal_printer_mode,
            )
            thumbnail_bytes, processed_bytes = await asyncio.gather(
                self.worker.thumbnail(source_bytes),
                self.worker.process(source_bytes, params),
            )
        except Exception as e:
            logger.error(f"Failed to create stencil: {e}")
            raise

        stencil_id = self._new_id()
        now = self._clock()
        written: List[str] = []
        try:
            original_path = await self.worker.run_io(
                self.content.save, AssetCategory.ORIGINAL, stencil_id, source_bytes, info.extension
            )
            written.append(original_path)
            thumbnail_path = await self.worker.run_io(
                self.content.save, AssetCategory.THUMBNAIL, stencil_id, thumbnail_bytes
            )
            written.append(thumbnail_path)
            processed_path = await self.worker.run_io(
                self.content.save, AssetCategory.PROCESSED, stencil_id, processed_bytes
            )
            written.append(processed_path)

            stencil = StencilRecord(
                id=stencil_id,
                name=name or default_stencil_name(now),
                created_at=now,
                last_modified_at=now,
                original_image_path=original_path,
                processed_image_path=processed_path,
                thumbnail_path=thumbnail_path,
                width_cm=width_cm,
                height_cm=width_cm * (info.height / info.width),
                contrast_level=params.contrast_level,
                paper_size=self.settings.default_paper_size,
            )
            await self.worker.run_io(self.metadata.put, stencil_id, stencil.to_dict())
        except Exception as e:
            logger.error(f"Failed to create stencil: {e}")
            await self._discard_assets(written)
            raise

        logger.info(f"Stencil created: {stencil.name} ({stencil.width_cm:g} × {stencil.height_cm:.2f} cm)")
        return stencil

    async def update_stencil(self, stencil_id: str, patch: Optional[StencilPatch] = None, **changes) -> StencilRecord:
        """Apply a partial update.

        Omitted fields keep their values. A width change rescales height by
        the stored aspect ratio. Any visual change re-renders the processed
        asset from the original with the fully merged parameters.

        Accepts either a StencilPatch or keyword fields (or both; keywords win).

        Raises:
            NotFoundError: If no stencil has this id
            InvalidParameterError: If a supplied field is out of its domain
        """
        existing = self._require(stencil_id)
        patch = replace(patch or StencilPatch(), **changes).validated()

        height_cm = existing.height_cm
        if patch.width_cm is not None and patch.width_cm != existing.width_cm:
            height_cm = patch.width_cm * existing.aspect_ratio

        updated = replace(
            existing,
            **patch.changes(),
            height_cm=height_cm,
            last_modified_at=self._clock(),
        )

        overwritten = False
        previous_processed: Optional[bytes] = None
        try:
            if patch.needs_reprocessing:
                original_bytes = await self.worker.run_io(self.content.read, existing.original_image_path)
                processed_bytes = await self.worker.process(
                    original_bytes, updated.transform_params(self.settings.thermal_printer_mode)
                )
                try:
                    previous_processed = await self.worker.run_io(self.content.read, updated.processed_image_path)
                except AssetNotFoundError:
                    previous_processed = None
                await self.worker.run_io(self.content.write, updated.processed_image_path, processed_bytes)
                overwritten = True
                logger.info(f"Reprocessed stencil: {updated.name}")

            await self.worker.run_io(self.metadata.put, stencil_id, updated.to_dict())
        except Exception as e:
            logger.error(f"Failed to update stencil {stencil_id}: {e}")
            if overwritten:
                await self._restore_asset(updated.processed_image_path, previous_processed)
            raise

        logger.info(f"Stencil updated: {updated.name}")
        return updated

    async def delete_stencil(self, stencil_id: str) -> None:
        """Delete a stencil's assets, then its record. Unknown ids are a no-op."""
        stencil = self.get_stencil(stencil_id)
        if stencil is None:
            return

        try:
            await self.worker.run_io(self.content.delete_many, stencil.asset_paths)
            await self.worker.run_io(self.metadata.delete, stencil_id)
        except Exception as e:
            logger.error(f"Failed to delete stencil {stencil_id}: {e}")
            raise

        logger.info(f"Stencil deleted: {stencil.name}")

    async def duplicate_stencil(self, stencil_id: str) -> StencilRecord:
        """Clone a stencil's assets and record under a new id.

        The original is copied byte for byte and keeps the source file's
        extension (a JPEG original stays .jpg) rather than the fixed .png
        used for processed assets. Processed and thumbnail assets use their
        category defaults.

        Raises:
            NotFoundError: If no stencil has this id
        """
        source = self._require(stencil_id)
        new_id = self._new_id()
        now = self._clock()
        written: List[str] = []

        try:
            original_bytes = await self.worker.run_io(self.content.read, source.original_image_path)
            processed_bytes = await self.worker.run_io(self.content.read, source.processed_image_path)
            thumbnail_bytes = None
            if source.thumbnail_path is not None:
                thumbnail_bytes = await self.worker.run_io(self.content.read, source.thumbnail_path)

            original_path = await self.worker.run_io(
                self.content.save, AssetCategory.ORIGINAL, new_id, original_bytes,
                Path(source.original_image_path).suffix,
            )
            written.append(original_path)
            processed_path = await self.worker.run_io(
                self.content.save, AssetCategory.PROCESSED, new_id, processed_bytes
            )
            written.append(processed_path)
            thumbnail_path = None
            if thumbnail_bytes is not None:
                thumbnail_path = await self.worker.run_io(
                    self.content.save, AssetCategory.THUMBNAIL, new_id, thumbnail_bytes
                )
                written.append(thumbnail_path)

            duplicate = replace(
                source,
                id=new_id,
                name=f"{source.name} (Copy)",
                created_at=now,
                last_modified_at=now,
                original_image_path=original_path,
                processed_image_path=processed_path,
                thumbnail_path=thumbnail_path,
            )
            await self.worker.run_io(self.metadata.put, new_id, duplicate.to_dict())
        except Exception as e:
            logger.error(f"Failed to duplicate stencil {stencil_id}: {e}")
            await self._discard_assets(written)
            raise

        logger.info(f"Stencil duplicated: {duplicate.name}")
        return duplicate

    async def mark_as_exported(self, stencil_id: str) -> None:
        """Stamp last_exported_at; leaves last_modified_at alone. Unknown ids are a no-op."""
        stencil = self.get_stencil(stencil_id)
        if stencil is None:
            return
        updated = replace(stencil, last_exported_at=self._clock())
        await self.worker.run_io(self.metadata.put, stencil_id, updated.to_dict())

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def get_statistics(self) -> dict:
        """Catalog counts plus storage usage per namespace.

        Returns:
            {
                "total_stencils": 12,
                "favorites": 3,
                "exported_count": 5,
                "storage_bytes": {"originals": ..., "processed": ..., "exports": ..., "cache": ...},
                "storage_used_bytes": 18874368,
                "storage_used_mb": 18.0,
                "storage_by_type_mb": {"originals": 11.5, ...}
            }
        """
        stencils = self._records()
        sizes = await self.worker.run_io(self.content.size_by_category)
        total = sum(sizes.values())
        return {
            "total_stencils": len(stencils),
            "favorites": sum(1 for s in stencils if s.is_favorite),
            "exported_count": sum(1 for s in stencils if s.last_exported_at is not None),
            "storage_bytes": sizes,
            "storage_used_bytes": total,
            "storage_used_mb": round(total / BYTES_PER_MB, 2),
            "storage_by_type_mb": {k: round(v / BYTES_PER_MB, 2) for k, v in sizes.items()},
        }

    async def cleanup(self) -> None:
        """Startup maintenance: prune expired exports, then reconcile."""
        await self.worker.run_io(self.content.initialize)
        await self.worker.run_io(self.content.prune_expired)
        await self.reconcile()

    async def reconcile(self) -> List[str]:
        """Remove asset files no record references.

        Records that point at a missing asset are logged, not deleted.

        Returns:
            Logical paths of the orphaned assets that were removed
        """
        stencils = self._records()
        referenced = {path for s in stencils for path in s.asset_paths}

        orphans: List[str] = []
        for category in (AssetCategory.ORIGINAL, AssetCategory.PROCESSED, AssetCategory.THUMBNAIL):
            listed = await self.worker.run_io(self.content.list, category)
            orphans.extend(path for path in listed if path not in referenced)

        for stencil in stencils:
            for path in stencil.asset_paths:
                if not await self.worker.run_io(self.content.exists, path):
                    logger.warning(f"Stencil {stencil.id} references missing asset: {path}")

        if orphans:
            await self.worker.run_io(self.content.delete_many, orphans)
            logger.info(f"Removed {len(orphans)} orphaned assets")
        return orphans

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _records(self) -> List[StencilRecord]:
        return [StencilRecord.from_dict(data) for data in self.metadata.values()]

    def _require(self, stencil_id: str) -> StencilRecord:
        stencil = self.get_stencil(stencil_id)
        if stencil is None:
            raise NotFoundError(f"Stencil not found: {stencil_id}")
        return stencil

    async def _discard_assets(self, paths: List[str]) -> None:
        """Best-effort removal of assets written by a failed operation."""
        for path in paths:
            try:
                await self.worker.run_io(self.content.delete, path)
            except StorageError as exc:
                logger.warning(f"Could not remove partial asset {path}: {exc}")

    async def _restore_asset(self, path: str, previous: Optional[bytes]) -> None:
        """Best-effort rollback of an overwritten asset (None: it did not exist)."""
        if previous is None:
            await self._discard_assets([path])
            return
        try:
            await self.worker.run_io(self.content.write, path, previous)
        except StorageError as exc:
            logger.warning(f"Could not restore asset {path}: {exc}")

    @staticmethod
    def _ordered(stencils: List[StencilRecord], favorites_first: bool = False) -> List[StencilRecord]:
        ordered = sorted(stencils, key=lambda s: (-s.last_modified_at.timestamp(), s.id))
        if favorites_first:
            ordered.sort(key=lambda s: not s.is_favorite)
        return ordered


def resolve_data_dir(data_dir: Optional[Path] = None) -> Path:
    """Data directory from the argument, STENCIL_DATA_DIR, or the default."""
    if data_dir is None:
        data_dir = os.getenv("STENCIL_DATA_DIR") or StencilConstants.DEFAULT_DATA_DIR
    return Path(data_dir).expanduser()


def open_catalog(
    data_dir: Optional[Path] = None,
    settings: Optional[AppSettings] = None,
    worker: Optional[PipelineWorker] = None,
) -> StencilCatalog:
    """Wire a catalog over the on-disk stores under data_dir.

    Layout:
        <data_dir>/stencils.json   metadata
        <data_dir>/assets/...      content store
    """
    root = resolve_data_dir(data_dir)
    content = ContentStore(root / StencilConstants.ASSETS_DIRNAME)
    content.initialize()
    metadata = JsonMetadataStore(root / StencilConstants.METADATA_FILENAME)
    return StencilCatalog(
        metadata=metadata,
        content=content,
        worker=worker or PipelineWorker(),
        settings=settings or AppSettings.from_env(),
    )
