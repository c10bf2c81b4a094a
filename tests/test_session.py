from __future__ import annotations

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor

from camscout.core import CollectingListener, ScanSession, SessionState
from camscout.models import DeviceKind, DeviceRecord


def _record(record_id: str) -> DeviceRecord:
    return DeviceRecord(
        id=record_id, name=f"Camera {record_id}", kind=DeviceKind.NETWORK
    )


def test_completion_fires_once_when_phases_and_timeout_race():
    listener = CollectingListener()

    async def run() -> ScanSession:
        session = ScanSession(listener, ["a", "b"], timeout=5.0)
        session.start()
        session.phase_finished("a")
        session.expire()
        session.phase_finished("b")
        session.expire()
        await session.wait()
        return session

    session = asyncio.run(run())
    assert listener.completions == 1
    assert session.state is SessionState.DONE
    assert session.timed_out is True


def test_nothing_is_delivered_after_completion():
    listener = CollectingListener()

    async def run() -> ScanSession:
        session = ScanSession(listener, ["network"], timeout=5.0)
        session.start()
        assert session.emit(_record("10.0.0.1:80"))
        session.phase_finished("network")
        assert not session.emit(_record("10.0.0.2:80"))
        session.progress("late progress")
        return session

    session = asyncio.run(run())
    assert listener.events[-1] == ("complete", None)
    assert [r.id for r in listener.records] == ["10.0.0.1:80"]
    assert "late progress" not in listener.progress
    assert [r.id for r in session.devices] == ["10.0.0.1:80"]


def test_duplicate_ids_are_reported_once():
    listener = CollectingListener()

    async def run() -> None:
        session = ScanSession(listener, ["network"], timeout=5.0)
        session.start()
        assert session.emit(_record("upnp_192.168.1.64"))
        assert not session.emit(_record("upnp_192.168.1.64"))
        session.phase_finished("network")

    asyncio.run(run())
    assert len(listener.records) == 1


def test_deadline_completes_with_hanging_phase():
    listener = CollectingListener()

    async def hang() -> None:
        await asyncio.sleep(3600)

    async def run() -> tuple[ScanSession, asyncio.Task[None]]:
        session = ScanSession(listener, ["slow", "fast"], timeout=0.2)
        session.start()
        task = asyncio.create_task(hang())
        session.track(task)
        session.phase_finished("fast")
        await session.wait()
        await session.drain()
        return session, task

    session, task = asyncio.run(run())
    assert listener.completions == 1
    assert session.timed_out is True
    assert session.pending_phases == ["slow"]
    assert task.cancelled()
    assert "Scan timeout reached, finalizing results" in listener.progress


def test_empty_phase_list_completes_immediately():
    listener = CollectingListener()

    async def run() -> ScanSession:
        session = ScanSession(listener, [], timeout=5.0)
        session.start()
        return session

    session = asyncio.run(run())
    assert session.completed
    assert listener.completions == 1


def test_cancel_finishes_session():
    listener = CollectingListener()

    async def run() -> ScanSession:
        session = ScanSession(listener, ["network"], timeout=5.0)
        session.start()
        session.cancel()
        session.cancel()
        return session

    session = asyncio.run(run())
    assert session.completed
    assert listener.completions == 1
    assert "Scan cancelled" in listener.progress


def test_completion_fires_once_when_threads_race():
    async def race(pool: ThreadPoolExecutor) -> tuple[CollectingListener, ScanSession]:
        listener = CollectingListener()
        session = ScanSession(listener, ["zeroconf"], timeout=5.0)
        session.start()
        barrier = threading.Barrier(2)

        def finish_phase() -> None:
            barrier.wait()
            session.phase_finished("zeroconf")

        def expire() -> None:
            barrier.wait()
            session.expire()

        loop = asyncio.get_running_loop()
        await asyncio.gather(
            loop.run_in_executor(pool, finish_phase),
            loop.run_in_executor(pool, expire),
        )
        await asyncio.wait_for(session.wait(), timeout=1.0)
        return listener, session

    with ThreadPoolExecutor(max_workers=2) as pool:
        for _ in range(200):
            listener, session = asyncio.run(race(pool))
            assert listener.completions == 1
            assert listener.events[-1] == ("complete", None)
            assert session.state is SessionState.DONE
