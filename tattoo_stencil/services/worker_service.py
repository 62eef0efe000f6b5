"""Off-thread execution for pipeline work and storage I/O.

CPU-bound rendering goes to a process pool (no memory shared with the
caller); blocking file I/O goes to a small thread pool. Callers await the
result, so the interactive thread is never blocked.
"""

import asyncio
import functools
import logging
import os
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from typing import Any, Callable, Optional, TypeVar

from ..models import TransformParams
from .image_service import ImageInfo
from .pipeline_service import probe_image, process_stencil, render_thumbnail

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PipelineWorker:
    """Async facade over the pipeline executors.

    Functions submitted to the CPU executor must be picklable top-level
    functions taking picklable arguments (bytes, TransformParams).
    """

    def __init__(
        self,
        executor: Optional[Executor] = None,
        io_executor: Optional[Executor] = None,
        max_workers: Optional[int] = None,
    ):
        self._owns_executor = executor is None
        self._owns_io = io_executor is None
        self.executor = executor or ProcessPoolExecutor(max_workers=max_workers)
        max_io = max(2, min(4, (os.cpu_count() or 2)))
        self.io_pool = io_executor or ThreadPoolExecutor(max_workers=max_io, thread_name_prefix="stencil-io")
        logger.debug(
            f"PipelineWorker init: cpu={type(self.executor).__name__}, "
            f"io={type(self.io_pool).__name__}"
        )

    async def run_cpu(self, fn: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, functools.partial(fn, *args))

    async def run_io(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.io_pool, functools.partial(fn, *args, **kwargs))

    async def process(self, source_bytes: bytes, params: TransformParams) -> bytes:
        """Run the transform pipeline off-thread."""
        return await self.run_cpu(process_stencil, source_bytes, params)

    async def thumbnail(self, source_bytes: bytes) -> bytes:
        return await self.run_cpu(render_thumbnail, source_bytes)

    async def probe(self, source_bytes: bytes) -> ImageInfo:
        return await self.run_cpu(probe_image, source_bytes)

    def shutdown(self, wait: bool = True) -> None:
        """Shut down the executors this worker created (injected ones are left alone)."""
        if self._owns_executor:
            self.executor.shutdown(wait=wait)
        if self._owns_io:
            self.io_pool.shutdown(wait=wait)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()
        return False
