import io

import numpy as np
import pytest
from PIL import Image

from tattoo_stencil.errors import DecodeError
from tattoo_stencil.models import TransformParams
from tattoo_stencil.services.image_service import ImageService
from tattoo_stencil.services.pipeline_service import process_stencil
from conftest import encode, gradient_image


def test_get_image_info_reports_size_and_extension(portrait_bytes):
    info = ImageService.get_image_info(portrait_bytes)
    assert (info.width, info.height) == (20, 30)
    assert info.format == "JPEG"
    assert info.extension == "jpg"


def test_zero_byte_input_is_rejected():
    with pytest.raises(DecodeError):
        ImageService.get_image_info(b"")


def test_palette_and_bilevel_images_are_normalized():
    assert ImageService.load_image(encode(Image.new("P", (4, 4), 3))).mode == "RGB"
    assert ImageService.load_image(encode(Image.new("1", (4, 4), 1))).mode == "L"


def test_resize_preserves_aspect_when_height_omitted():
    out = ImageService.resize(gradient_image(40, 30), 20)
    assert out.size == (20, 15)


def test_thumbnail_ignores_aspect():
    assert ImageService.thumbnail(gradient_image(40, 30)).size == (200, 200)


def test_crop_inside_bounds():
    out = ImageService.crop(gradient_image(40, 30), 5, 5, 10, 8)
    assert out.size == (10, 8)


def test_crop_outside_bounds_raises():
    with pytest.raises(ValueError):
        ImageService.crop(gradient_image(40, 30), 35, 0, 10, 10)


def test_grayscale_is_single_channel():
    gray = ImageService.to_grayscale(Image.new("RGB", (2, 2), (255, 0, 0)))
    assert gray.mode == "L"
    # 0.299 * 255
    assert gray.getpixel((0, 0)) == 76


def test_threshold_with_custom_cutoff():
    img = Image.new("L", (1, 1), 100)
    assert ImageService.apply_threshold(img, threshold=90).getpixel((0, 0)) == 255
    assert ImageService.apply_threshold(img, threshold=101).getpixel((0, 0)) == 0


def test_rotate_rejects_non_right_angles():
    with pytest.raises(ValueError):
        ImageService.rotate(gradient_image(), 45)


def test_sixteen_bit_grayscale_is_rescaled_not_clipped():
    # 20000 / 65535 is about 30% gray
    deep = Image.fromarray(np.full((4, 4), 20000, dtype=np.uint16))
    img = ImageService.load_image(encode(deep))
    assert img.mode == "L"
    assert img.getpixel((0, 0)) == 78


def test_sixteen_bit_source_survives_the_pipeline():
    deep = Image.fromarray(np.full((4, 4), 20000, dtype=np.uint16))
    out = Image.open(io.BytesIO(process_stencil(encode(deep), TransformParams(contrast_level=33))))
    assert abs(out.getpixel((0, 0)) - 78) <= 1


def test_unit_float_image_is_scaled_to_full_range():
    img = ImageService.normalize_mode(Image.fromarray(np.full((2, 2), 0.5, dtype=np.float32)))
    assert img.mode == "L"
    assert img.getpixel((0, 0)) == 128
