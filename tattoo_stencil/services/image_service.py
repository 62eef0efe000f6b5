"""Image primitives for stencil processing"""

import io
from typing import NamedTuple, Optional

import numpy as np
from PIL import Image, ImageOps

from ..constants import StencilConstants
from ..errors import DecodeError


class ImageInfo(NamedTuple):
    """Decoded dimensions and source format of an image."""
    width: int
    height: int
    format: Optional[str]
    extension: str


class ImageService:
    """Image operations for stencil rendering.

    Every operation takes and returns a PIL Image in 'L' or 'RGB' mode;
    load_image normalizes anything else on the way in.
    """

    @staticmethod
    def load_image(data: bytes) -> Image.Image:
        """Decode bytes into an upright 'L' or 'RGB' image.

        Raises:
            DecodeError: If the bytes are not a raster image or have zero area
        """
        if not data:
            raise DecodeError("Empty image data")
        try:
            img = Image.open(io.BytesIO(data))
            img.load()
            source_format = img.format
            img = ImageOps.exif_transpose(img)
        except Exception as exc:
            # Pillow signals bad input through many exception types
            raise DecodeError(f"Failed to decode image: {exc}") from exc

        if img.width < 1 or img.height < 1:
            raise DecodeError(f"Image has zero area: {img.width}x{img.height}")

        img = ImageService.normalize_mode(img)
        img.format = source_format
        return img

    @staticmethod
    def normalize_mode(img: Image.Image) -> Image.Image:
        """Convert to 'L' or 'RGB', flattening transparency onto white."""
        if img.mode in ("L", "RGB"):
            return img
        if img.mode == "1":
            return img.convert("L")
        if img.mode in ("I", "F") or img.mode.startswith("I;16"):
            return ImageService._rescale_to_8bit(img)
        if "A" in img.getbands() or "transparency" in img.info:
            rgba = img.convert("RGBA")
            canvas = Image.new("RGB", rgba.size, "white")
            canvas.paste(rgba, mask=rgba.getchannel("A"))
            return canvas
        return img.convert("RGB")

    @staticmethod
    def _rescale_to_8bit(img: Image.Image) -> Image.Image:
        """Map high bit-depth grayscale onto 0-255 instead of clipping it.

        16-bit data (I;16*, or I holding values above 255) scales by 1/257 so
        65535 -> 255. Float data in 0..1 scales by 255; anything else clips.
        """
        arr = np.asarray(img, dtype=np.float64)
        if img.mode.startswith("I;16") or (img.mode == "I" and arr.max() > 255):
            arr = np.clip(arr, 0, 65535) / 257.0
        elif img.mode == "F" and arr.max() <= 1.0:
            arr = arr * 255.0
        return ImageService._from_float(arr)

    @staticmethod
    def get_image_info(data: bytes) -> ImageInfo:
        """Decode bytes and report dimensions plus a file extension for them."""
        img = ImageService.load_image(data)
        return ImageInfo(
            width=img.width,
            height=img.height,
            format=img.format,
            extension=ImageService.extension_for(img.format),
        )

    @staticmethod
    def extension_for(image_format: Optional[str]) -> str:
        """File extension for a PIL format name ('JPEG' -> 'jpg')."""
        if not image_format:
            return StencilConstants.OUTPUT_EXTENSION
        ext = image_format.lower()
        return {"jpeg": "jpg", "tiff": "tif"}.get(ext, ext)

    @staticmethod
    def rotate(img: Image.Image, degrees: int) -> Image.Image:
        """Rotate clockwise by a right angle.

        Uses transposition, so canonical angles are exact (no resampling).
        """
        degrees %= 360
        if degrees == 0:
            return img
        if degrees == 90:
            return img.transpose(Image.Transpose.ROTATE_270)
        if degrees == 180:
            return img.transpose(Image.Transpose.ROTATE_180)
        if degrees == 270:
            return img.transpose(Image.Transpose.ROTATE_90)
        raise ValueError(f"Only right-angle rotations are supported (got {degrees})")

    @staticmethod
    def mirror_horizontal(img: Image.Image) -> Image.Image:
        """Reflect about the vertical axis (left <-> right)."""
        return img.transpose(Image.Transpose.FLIP_LEFT_RIGHT)

    @staticmethod
    def mirror_vertical(img: Image.Image) -> Image.Image:
        """Reflect about the horizontal axis (top <-> bottom)."""
        return img.transpose(Image.Transpose.FLIP_TOP_BOTTOM)

    @staticmethod
    def adjust_brightness(img: Image.Image, level: int) -> Image.Image:
        """Shift every channel by level * BRIGHTNESS_STEP (identity at 0)."""
        arr = np.asarray(img, dtype=np.float32)
        arr = arr + level * StencilConstants.BRIGHTNESS_STEP
        return ImageService._from_float(arr)

    @staticmethod
    def adjust_contrast(img: Image.Image, factor: float) -> Image.Image:
        """Scale each channel's distance from mid-gray by factor.

        factor < 1 flattens toward gray, factor > 1 pushes toward black/white.
        """
        mid = StencilConstants.CONTRAST_MIDPOINT
        arr = np.asarray(img, dtype=np.float32)
        arr = (arr - mid) * factor + mid
        return ImageService._from_float(arr)

    @staticmethod
    def to_grayscale(img: Image.Image) -> Image.Image:
        """Convert to single-channel luminance (ITU-R 601 weights)."""
        return Image.fromarray(ImageService._from_float_array(ImageService.luminance(img)))

    @staticmethod
    def luminance(img: Image.Image) -> np.ndarray:
        """Per-pixel luminance as float32 on a 0-255 scale."""
        arr = np.asarray(img, dtype=np.float32)
        if arr.ndim == 2:
            return arr
        r, g, b = arr[:, :, 0], arr[:, :, 1], arr[:, :, 2]
        return 0.299 * r + 0.587 * g + 0.114 * b

    @staticmethod
    def apply_threshold(img: Image.Image, threshold: int = StencilConstants.THERMAL_THRESHOLD) -> Image.Image:
        """Binarize: luminance < threshold -> 0 (black), else 255 (white).

        Returns an 'L' image holding only 0 and 255. Lossy: the tonal data
        it discards cannot be recovered from the result.
        """
        lum = ImageService.luminance(img)
        binary = np.where(lum < threshold, 0, 255).astype(np.uint8)
        return Image.fromarray(binary)

    @staticmethod
    def resize(img: Image.Image, width: int, height: Optional[int] = None) -> Image.Image:
        """Resize with bilinear interpolation.

        If height is None the aspect ratio is preserved.
        """
        if width < 1:
            raise ValueError(f"width must be >= 1 (got {width})")
        if height is None:
            height = max(1, int(round(img.height * width / float(img.width))))
        return img.resize((width, height), Image.Resampling.BILINEAR)

    @staticmethod
    def crop(img: Image.Image, x: int, y: int, width: int, height: int) -> Image.Image:
        """Crop a width x height box whose top-left corner is (x, y)."""
        if width < 1 or height < 1:
            raise ValueError(f"Crop box must be at least 1x1 (got {width}x{height})")
        if x < 0 or y < 0 or x + width > img.width or y + height > img.height:
            raise ValueError(
                f"Crop box ({x},{y},{width}x{height}) extends beyond image {img.width}x{img.height}"
            )
        return img.crop((x, y, x + width, y + height))

    @staticmethod
    def thumbnail(img: Image.Image) -> Image.Image:
        """Fixed-size preview (200x200); aspect ratio is not preserved."""
        return ImageService.resize(img, *StencilConstants.THUMBNAIL_SIZE)

    @staticmethod
    def encode_png(img: Image.Image) -> bytes:
        """Lossless encoding used for every processed asset."""
        buffer = io.BytesIO()
        img.save(buffer, format=StencilConstants.OUTPUT_FORMAT)
        return buffer.getvalue()

    @staticmethod
    def encode_jpeg(img: Image.Image, quality: int = StencilConstants.THUMBNAIL_QUALITY) -> bytes:
        """Lossy encoding for previews."""
        if img.mode != "RGB":
            img = img.convert("RGB")
        buffer = io.BytesIO()
        img.save(buffer, format=StencilConstants.PREVIEW_FORMAT, quality=quality)
        return buffer.getvalue()

    @staticmethod
    def _from_float(arr: np.ndarray) -> Image.Image:
        return Image.fromarray(ImageService._from_float_array(arr))

    @staticmethod
    def _from_float_array(arr: np.ndarray) -> np.ndarray:
        return np.clip(np.rint(arr), 0, 255).astype(np.uint8)
