import asyncio
import threading
import time
from unittest.mock import Mock

import pytest

from inference.model_manager import ModelLifecycleManager
from utils.errors import ModelLoadFailed


@pytest.mark.asyncio
async def test_concurrent_loads_share_one_attempt():
    gate = threading.Event()

    def slow_factory():
        gate.wait(2)
        return "model"

    factory = Mock(side_effect=slow_factory)
    manager = ModelLifecycleManager(factory)

    waiters = [asyncio.create_task(manager.load()) for _ in range(5)]
    await asyncio.sleep(0.05)
    assert manager.is_loading
    gate.set()
    results = await asyncio.gather(*waiters)

    assert results == ["model"] * 5
    assert factory.call_count == 1
    assert manager.is_ready()
    assert manager.get() == "model"


@pytest.mark.asyncio
async def test_loaded_model_is_returned_without_reloading():
    factory = Mock(return_value="model")
    manager = ModelLifecycleManager(factory)
    await manager.load()
    await manager.load()
    assert factory.call_count == 1


@pytest.mark.asyncio
async def test_primary_failure_falls_back_exactly_once():
    primary = Mock(side_effect=RuntimeError("no weights"))
    fallback = Mock(return_value="small-model")
    manager = ModelLifecycleManager(primary, fallback)

    assert await manager.load() == "small-model"
    assert manager.used_fallback
    assert primary.call_count == 1
    assert fallback.call_count == 1


@pytest.mark.asyncio
async def test_factory_returning_none_counts_as_failure():
    manager = ModelLifecycleManager(Mock(return_value=None), Mock(return_value="small-model"))
    assert await manager.load() == "small-model"


@pytest.mark.asyncio
async def test_double_failure_is_cached_until_reset():
    primary = Mock(side_effect=RuntimeError("primary"))
    fallback = Mock(side_effect=RuntimeError("fallback"))
    manager = ModelLifecycleManager(primary, fallback)

    with pytest.raises(ModelLoadFailed) as info:
        await manager.load()
    assert isinstance(info.value.primary_error, RuntimeError)
    assert str(info.value.fallback_error) == "fallback"
    assert not manager.is_ready()

    with pytest.raises(ModelLoadFailed):
        await manager.load()
    assert primary.call_count == 1
    assert fallback.call_count == 1

    manager.reset()
    primary.side_effect = None
    primary.return_value = "model"
    assert await manager.load() == "model"
    assert primary.call_count == 2


@pytest.mark.asyncio
async def test_wait_ready_times_out_without_raising():
    gate = threading.Event()
    manager = ModelLifecycleManager(lambda: gate.wait(2) and "model")

    assert await manager.wait_ready(0.05) is False
    # the shared load keeps going after the waiter gave up
    assert manager.is_loading
    gate.set()
    assert await manager.load() == "model"


@pytest.mark.asyncio
async def test_wait_ready_reports_failure_as_false():
    manager = ModelLifecycleManager(Mock(side_effect=RuntimeError("boom")))
    assert await manager.wait_ready(1.0) is False
    assert isinstance(manager.last_error, ModelLoadFailed)


def test_manager_starts_unloaded():
    manager = ModelLifecycleManager(lambda: time.sleep(0))
    assert not manager.is_ready()
    assert manager.get() is None
    assert manager.last_error is None
