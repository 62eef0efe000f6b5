"""Pipeline service: stencil transform chain

Each stage is independent and testable alone:
- rotate → mirror_horizontal → mirror_vertical → brightness → contrast → thermal

The order is fixed. Every function here is pure (bytes in, bytes out) and
module-level so it can be submitted to a process pool.
"""

from dataclasses import dataclass
from typing import Callable, Tuple
import logging
import time

from PIL import Image

from ..constants import StencilConstants
from ..models import TransformParams
from .image_service import ImageInfo, ImageService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransformStage:
    """A named pipeline step.

    `enabled` decides whether the step runs for the given parameters;
    `apply` maps one image to the next.
    """
    name: str
    apply: Callable[[Image.Image, TransformParams], Image.Image]
    enabled: Callable[[TransformParams], bool]

    def __call__(self, img: Image.Image, params: TransformParams) -> Image.Image:
        return self.apply(img, params)


def _always(params: TransformParams) -> bool:
    return True


TRANSFORM_STAGES: Tuple[TransformStage, ...] = (
    TransformStage(
        name="rotate",
        apply=lambda img, p: ImageService.rotate(img, p.rotation_degrees),
        enabled=lambda p: p.rotation_degrees != 0,
    ),
    TransformStage(
        name="mirror_horizontal",
        apply=lambda img, p: ImageService.mirror_horizontal(img),
        enabled=lambda p: p.mirror_h,
    ),
    TransformStage(
        name="mirror_vertical",
        apply=lambda img, p: ImageService.mirror_vertical(img),
        enabled=lambda p: p.mirror_v,
    ),
    TransformStage(
        name="brightness",
        apply=lambda img, p: ImageService.adjust_brightness(img, p.brightness_level),
        enabled=lambda p: p.brightness_level != 0,
    ),
    # Contrast has no identity bypass: it runs on every pass
    TransformStage(
        name="contrast",
        apply=lambda img, p: ImageService.adjust_contrast(img, p.contrast_factor),
        enabled=_always,
    ),
    TransformStage(
        name="thermal",
        apply=lambda img, p: ImageService.apply_threshold(img, StencilConstants.THERMAL_THRESHOLD),
        enabled=lambda p: p.thermal_mode,
    ),
)


def active_stages(params: TransformParams) -> list[str]:
    """Names of the stages that will run for params, in order."""
    return [stage.name for stage in TRANSFORM_STAGES if stage.enabled(params)]


def apply_stages(img: Image.Image, params: TransformParams) -> Image.Image:
    """Run the enabled stages over an already-decoded image."""
    for stage in TRANSFORM_STAGES:
        if not stage.enabled(params):
            continue
        started = time.perf_counter()
        img = stage(img, params)
        logger.debug(
            f"stage {stage.name}: {img.width}x{img.height} {img.mode} "
            f"in {(time.perf_counter() - started) * 1000:.1f}ms"
        )
    return img


def process_stencil(source_bytes: bytes, params: TransformParams) -> bytes:
    """Render a stencil from source bytes (deterministic, side-effect free).

    Input:  original image bytes (any format Pillow decodes)
    Output: PNG bytes

    Args:
        source_bytes: Untouched original asset. Never feed a previous
            pipeline output back in; the tonal stages are lossy.
        params: Transform parameters

    Raises:
        DecodeError: If source_bytes is not a raster image
    """
    img = ImageService.load_image(source_bytes)
    img = apply_stages(img, params)
    return ImageService.encode_png(img)


def render_thumbnail(source_bytes: bytes) -> bytes:
    """Fixed-size JPEG preview of the source image."""
    img = ImageService.load_image(source_bytes)
    return ImageService.encode_jpeg(ImageService.thumbnail(img))


def probe_image(source_bytes: bytes) -> ImageInfo:
    """Decode source bytes and report their dimensions and format."""
    return ImageService.get_image_info(source_bytes)
