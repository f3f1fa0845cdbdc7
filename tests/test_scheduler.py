import asyncio
from unittest.mock import MagicMock

from doctainr.scheduler import RefreshScheduler
from doctainr.state import StateStore


def _store():
    store = MagicMock()
    store.degraded = False
    return store


def test_run_once_respects_intervals():
    store = _store()
    scheduler = RefreshScheduler(store, containers_interval=1.0, others_interval=5.0)

    assert scheduler.run_once(now=100.0) == 3
    assert scheduler.run_once(now=100.5) == 0
    assert scheduler.run_once(now=101.0) == 1
    assert scheduler.run_once(now=105.0) == 3

    assert store.refresh_containers.call_count == 3
    assert store.refresh_images.call_count == 2
    assert store.refresh_volumes.call_count == 2


def test_force_refresh_refreshes_every_kind():
    store = _store()
    scheduler = RefreshScheduler(store)
    scheduler.mark_refreshed(now=10.0)

    assert scheduler.run_once(now=10.1) == 0
    scheduler.force_refresh()
    assert scheduler.run_once(now=10.2) == 3
    assert scheduler._force_refresh_flag is False


def test_degraded_store_is_not_polled():
    store = _store()
    store.degraded = True

    assert RefreshScheduler(store).run_once(now=0.0) == 0
    store.refresh_containers.assert_not_called()


def test_scheduler_task_refreshes_and_stops(engine):
    async def scenario():
        store = StateStore(engine)
        scheduler = RefreshScheduler(store, containers_interval=0.01, others_interval=0.05, tick=0.01)
        scheduler.start()
        await asyncio.sleep(0.1)
        await scheduler.stop()
        await store.wait_idle()
        return store, scheduler

    store, scheduler = asyncio.run(scenario())
    assert scheduler.running is False
    assert engine.count("list_containers") >= 2
    assert engine.count("list_images") >= 1
    assert len(store.containers) == 2


def test_tick_errors_do_not_stop_loop():
    store = _store()
    calls = []

    def refresh():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("boom")

    store.refresh_containers.side_effect = refresh

    async def scenario():
        scheduler = RefreshScheduler(store, containers_interval=0.0, others_interval=100.0, tick=0.01)
        scheduler.start()
        await asyncio.sleep(0.05)
        await scheduler.stop()

    asyncio.run(scenario())
    assert len(calls) >= 2
