"""Service layer for stencil image operations"""

from .image_service import ImageService, ImageInfo
from .pipeline_service import TRANSFORM_STAGES, TransformStage, process_stencil, render_thumbnail, probe_image
from .storage_service import AssetCategory, ContentStore
from .worker_service import PipelineWorker

__all__ = [
    'ImageService', 'ImageInfo', 'TRANSFORM_STAGES', 'TransformStage', 'process_stencil',
    'render_thumbnail', 'probe_image', 'AssetCategory', 'ContentStore', 'PipelineWorker',
]
