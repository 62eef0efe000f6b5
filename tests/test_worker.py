"""Tests for off-thread pipeline execution."""

import asyncio
from concurrent.futures import ThreadPoolExecutor

from tattoo_stencil.models import TransformParams
from tattoo_stencil.services.pipeline_service import probe_image, process_stencil
from tattoo_stencil.services.worker_service import PipelineWorker


def test_worker_output_matches_direct_pipeline_call(worker, photo_bytes):
    params = TransformParams(rotation_degrees=90, mirror_h=True, contrast_level=75)
    assert asyncio.run(worker.process(photo_bytes, params)) == process_stencil(photo_bytes, params)


def test_probe_runs_off_thread(worker, portrait_bytes):
    info = asyncio.run(worker.probe(portrait_bytes))
    assert info == probe_image(portrait_bytes)
    assert (info.width, info.height) == (20, 30)


def test_concurrent_jobs_complete_independently(worker, photo_bytes):
    async def render_all():
        return await asyncio.gather(*(
            worker.process(photo_bytes, TransformParams(contrast_level=level)) for level in (0, 50, 100)
        ))

    outputs = asyncio.run(render_all())
    assert len(set(outputs)) == 3


def test_process_pool_round_trip(photo_bytes):
    params = TransformParams(brightness_level=10, thermal_mode=True)
    with PipelineWorker(max_workers=1) as worker:
        result = asyncio.run(worker.process(photo_bytes, params))
    assert result == process_stencil(photo_bytes, params)


def test_injected_executors_are_left_running():
    cpu = ThreadPoolExecutor(max_workers=1)
    io_pool = ThreadPoolExecutor(max_workers=1)
    PipelineWorker(executor=cpu, io_executor=io_pool).shutdown()
    assert cpu.submit(lambda: 1).result() == 1
    assert io_pool.submit(lambda: 2).result() == 2
    cpu.shutdown()
    io_pool.shutdown()
