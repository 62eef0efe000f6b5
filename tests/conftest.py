import io
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import numpy as np
import pytest
from PIL import Image

from tattoo_stencil.metadata import MemoryMetadataStore
from tattoo_stencil.repository import StencilCatalog
from tattoo_stencil.services.storage_service import ContentStore
from tattoo_stencil.services.worker_service import PipelineWorker


def encode(img: Image.Image, fmt: str = "PNG") -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


def gradient_image(width: int = 40, height: int = 30) -> Image.Image:
    """RGB image with a distinct value at every pixel."""
    xs = np.linspace(0, 255, width, dtype=np.float32)
    ys = np.linspace(0, 255, height, dtype=np.float32)
    r = np.tile(xs, (height, 1))
    g = np.tile(ys[:, None], (1, width))
    b = (r + g) / 2
    arr = np.stack([r, g, b], axis=2).astype(np.uint8)
    return Image.fromarray(arr)


class FakeClock:
    """Returns strictly increasing times, one second apart."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def photo_bytes():
    """40x30 gradient photo as PNG."""
    return encode(gradient_image())


@pytest.fixture
def portrait_bytes():
    """20x30 gradient photo (aspect 1.5) as JPEG."""
    return encode(gradient_image(20, 30), "JPEG")


@pytest.fixture
def worker():
    cpu = ThreadPoolExecutor(max_workers=2)
    io_pool = ThreadPoolExecutor(max_workers=2)
    yield PipelineWorker(executor=cpu, io_executor=io_pool)
    cpu.shutdown(wait=True)
    io_pool.shutdown(wait=True)


@pytest.fixture
def content_store(tmp_path):
    store = ContentStore(tmp_path / "assets")
    store.initialize()
    return store


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def catalog(content_store, worker, clock):
    return StencilCatalog(
        metadata=MemoryMetadataStore(),
        content=content_store,
        worker=worker,
        clock=clock,
    )
