"""Test suite for the connectivity monitor."""

import asyncio

import pytest

from fittrck_chat.services.connectivity import ConnectivityMonitor


def test_listeners_fire_only_on_transitions():
    monitor = ConnectivityMonitor(initially_connected=True)
    seen = []
    monitor.subscribe(seen.append)

    monitor.set_connected(True)
    monitor.set_connected(False)
    monitor.set_connected(False)
    monitor.set_connected(True)

    assert seen == [False, True]
    assert monitor.is_connected


def test_unsubscribe():
    monitor = ConnectivityMonitor()
    seen = []
    unsubscribe = monitor.subscribe(seen.append)

    unsubscribe()
    monitor.set_connected(False)

    assert seen == []
    assert not monitor.is_connected


def test_failing_listener_does_not_block_others():
    monitor = ConnectivityMonitor()
    seen = []

    def broken(_):
        raise RuntimeError("boom")

    monitor.subscribe(broken)
    monitor.subscribe(seen.append)
    monitor.set_connected(False)

    assert seen == [False]


@pytest.mark.asyncio
async def test_probe_reports_reachable_server():
    server = await asyncio.start_server(lambda r, w: w.close(), "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    monitor = ConnectivityMonitor(host="127.0.0.1", port=port, initially_connected=False)

    try:
        assert await monitor.probe() is True
    finally:
        server.close()
        await server.wait_closed()

    assert monitor.is_connected


@pytest.mark.asyncio
async def test_probe_reports_unreachable_port():
    server = await asyncio.start_server(lambda r, w: w.close(), "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    server.close()
    await server.wait_closed()
    monitor = ConnectivityMonitor(host="127.0.0.1", port=port, probe_timeout=1.0)

    assert await monitor.probe() is False
    assert not monitor.is_connected


@pytest.mark.asyncio
async def test_start_and_stop_background_probe():
    server = await asyncio.start_server(lambda r, w: w.close(), "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    monitor = ConnectivityMonitor(host="127.0.0.1", port=port, interval=0.01, initially_connected=False)
    changed = asyncio.Event()
    monitor.subscribe(lambda connected: changed.set())

    try:
        await monitor.start()
        await asyncio.wait_for(changed.wait(), timeout=2.0)
        assert monitor.is_connected
    finally:
        await monitor.stop()
        server.close()
        await server.wait_closed()

    assert monitor._probe_task is None
