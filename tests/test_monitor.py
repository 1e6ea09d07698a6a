"""End-to-end cycle scenarios through the monitor."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from ping_samples import LINUX_DOWN_OUTPUT, LINUX_UP_OUTPUT
from watchping.monitor.models import StateVerdict


class FakeNetwork:
    """Runner stub whose set of unreachable hosts can change between cycles."""

    def __init__(self):
        self.down = set()

    async def probe(self, host, timeout, retries):
        from watchping.probe.runner import RawProbeResult

        if host in self.down:
            return RawProbeResult(host=host, returncode=1, output=LINUX_DOWN_OUTPUT)
        return RawProbeResult(host=host, returncode=0, output=LINUX_UP_OUTPUT)


def _recorder(name, change_triggered):
    notifier = MagicMock()
    notifier.name = name
    notifier.change_triggered = change_triggered
    notifier.last_error = None
    notifier.notify = AsyncMock(return_value=True)
    return notifier


@pytest.fixture
def setup(monkeypatch):
    from watchping.monitor.cycle import CycleExecutor
    from watchping.monitor.monitor import Monitor
    from watchping.notifications import notifier as notifier_module
    from watchping.notifications.notifier import NotificationDispatcher

    monkeypatch.setattr(notifier_module, "notifications_sent_total", MagicMock())
    monkeypatch.setattr(notifier_module, "notifications_failed_total", MagicMock())

    network = FakeNetwork()
    sinks = {
        "logfile": _recorder("logfile", False),
        "web": _recorder("web", False),
        "email": _recorder("email", True),
        "syslog": _recorder("syslog", True),
    }
    monitor = Monitor(
        hosts=["a", "b"],
        executor=CycleExecutor(runner=network),
        dispatcher=NotificationDispatcher(list(sinks.values())),
    )
    return monitor, network, sinks


def _reset(sinks):
    for sink in sinks.values():
        sink.notify.reset_mock()


@pytest.mark.asyncio
async def test_all_up_first_cycle_is_silent_but_recorded(setup):
    monitor, network, sinks = setup

    verdict = await monitor.run_cycle()

    assert verdict is StateVerdict.UNCHANGED
    sinks["logfile"].notify.assert_awaited_once()
    sinks["web"].notify.assert_awaited_once()
    sinks["email"].notify.assert_not_awaited()
    sinks["syslog"].notify.assert_not_awaited()


@pytest.mark.asyncio
async def test_host_going_down_alerts_once_then_recovers(setup):
    monitor, network, sinks = setup

    await monitor.run_cycle()
    _reset(sinks)

    # Cycle 2: a goes down
    network.down = {"a"}
    verdict = await monitor.run_cycle()
    assert verdict is StateVerdict.CHANGED_TO_DOWN
    report = sinks["email"].notify.await_args.args[0]
    assert report.dead_hosts == frozenset({"a"})
    sinks["syslog"].notify.assert_awaited_once()
    _reset(sinks)

    # Cycle 3: still down, no repeat alert
    verdict = await monitor.run_cycle()
    assert verdict is StateVerdict.UNCHANGED
    sinks["email"].notify.assert_not_awaited()
    sinks["logfile"].notify.assert_awaited_once()
    _reset(sinks)

    # Cycle 4: all clear
    network.down = set()
    verdict = await monitor.run_cycle()
    assert verdict is StateVerdict.CHANGED_TO_ALL_UP
    sinks["email"].notify.assert_awaited_once()
    assert sinks["email"].notify.await_args.args[1] is StateVerdict.CHANGED_TO_ALL_UP


@pytest.mark.asyncio
async def test_first_cycle_with_host_down_alerts_immediately(setup):
    monitor, network, sinks = setup
    network.down = {"b"}

    verdict = await monitor.run_cycle()

    assert verdict is StateVerdict.CHANGED_TO_DOWN
    sinks["email"].notify.assert_awaited_once()
    assert monitor.tracker.previous == frozenset({"b"})


@pytest.mark.asyncio
async def test_state_committed_even_if_dispatch_raises(setup):
    monitor, network, sinks = setup
    network.down = {"a"}
    monitor.dispatcher.dispatch = AsyncMock(side_effect=RuntimeError("boom"))

    with pytest.raises(RuntimeError):
        await monitor.run_cycle()

    assert monitor.tracker.previous == frozenset({"a"})


@pytest.mark.asyncio
async def test_wait_idle_waits_for_running_cycle(setup):
    monitor, network, sinks = setup
    gate = asyncio.Event()
    original = network.probe

    async def slow_probe(host, timeout, retries):
        await gate.wait()
        return await original(host, timeout, retries)

    network.probe = slow_probe

    cycle = asyncio.ensure_future(monitor.run_cycle())
    await asyncio.sleep(0)
    waiter = asyncio.ensure_future(monitor.wait_idle())
    await asyncio.sleep(0.01)
    assert not waiter.done()

    gate.set()
    await cycle
    await asyncio.wait_for(waiter, timeout=1)


def test_from_settings_checks_recorder_paths(tmp_path):
    from watchping.config import Settings
    from watchping.errors import WebFileNotWritableError
    from watchping.monitor.monitor import Monitor

    settings = Settings(web_file=tmp_path / "missing" / "hosts.html", email_enabled=False, syslog_enabled=False)

    with pytest.raises(WebFileNotWritableError):
        Monitor.from_settings(settings, ["a"])


def test_from_settings_wires_probe_options(tmp_path):
    from watchping.config import Settings
    from watchping.monitor.monitor import Monitor

    settings = Settings(
        probe_timeout=3.5,
        probe_retries=2,
        probe_concurrency=4,
        ping_command="ping6",
        log_file=tmp_path / "w.log",
    )

    monitor = Monitor.from_settings(settings, ["a", "b"])

    assert monitor.hosts == ("a", "b")
    assert monitor.timeout == 3.5
    assert monitor.retries == 2
    assert monitor.executor.concurrency == 4
    assert monitor.executor.runner.ping_command == "ping6"
    assert (tmp_path / "w.log").exists()
