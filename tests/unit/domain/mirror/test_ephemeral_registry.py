"""Tests for EphemeralRegistry lifecycle."""

import asyncio
import logging

import pytest

from regsync.domain.mirror.service.lifecycle import EphemeralRegistry, RegistryState
from regsync.domain.shared.error import BindError, InvalidStateError, ServeError


class TestListen:
    @pytest.mark.asyncio
    async def test_address_is_loopback_with_bound_port(self, make_server):
        registry = EphemeralRegistry(make_server(5007))
        await registry.listen()
        assert registry.state == RegistryState.LISTENING
        assert registry.address == "127.0.0.1:5007"

    @pytest.mark.asyncio
    async def test_bind_failure_leaves_registry_created(self, make_server):
        registry = EphemeralRegistry(make_server(5001, fail_bind=True))
        with pytest.raises(BindError):
            await registry.listen()
        assert registry.state == RegistryState.CREATED

    @pytest.mark.asyncio
    async def test_address_unavailable_before_listen(self, make_server):
        with pytest.raises(InvalidStateError):
            _ = EphemeralRegistry(make_server(5001)).address

    @pytest.mark.asyncio
    async def test_listen_twice_is_rejected(self, make_server):
        registry = EphemeralRegistry(make_server(5001))
        await registry.listen()
        with pytest.raises(InvalidStateError):
            await registry.listen()
        await registry.shutdown()


class TestServeAndRun:
    @pytest.mark.asyncio
    async def test_serve_requires_listening(self, make_server):
        with pytest.raises(InvalidStateError):
            EphemeralRegistry(make_server(5001)).serve()

    @pytest.mark.asyncio
    async def test_run_returns_work_result(self, make_server):
        server = make_server(5001)
        async with EphemeralRegistry(server) as registry:
            assert registry.state == RegistryState.SERVING
            result = await registry.run(_value("done"))
        assert result == "done"
        assert registry.state == RegistryState.STOPPED
        assert server.shut_down

    @pytest.mark.asyncio
    async def test_run_before_serving_is_rejected(self, make_server):
        registry = EphemeralRegistry(make_server(5001))
        work = _value(1)
        with pytest.raises(InvalidStateError):
            await registry.run(work)
        work.close()

    @pytest.mark.asyncio
    async def test_work_error_propagates_and_registry_stops(self, make_server):
        server = make_server(5001)
        with pytest.raises(ValueError, match="boom"):
            async with EphemeralRegistry(server) as registry:
                await registry.run(_fail(ValueError("boom")))
        assert server.shut_down
        assert registry.state == RegistryState.STOPPED

    @pytest.mark.asyncio
    async def test_serve_crash_cancels_work(self, make_server):
        server = make_server(5001)
        work_cancelled = asyncio.Event()

        async def work():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                work_cancelled.set()
                raise

        async with EphemeralRegistry(server) as registry:
            asyncio.get_running_loop().call_later(0.01, server.crash, OSError("disk full"))
            with pytest.raises(ServeError, match="disk full"):
                await registry.run(work())

        assert work_cancelled.is_set()
        assert server.shut_down

    @pytest.mark.asyncio
    async def test_serve_error_is_raised_unwrapped(self, make_server):
        server = make_server(5001)
        async with EphemeralRegistry(server) as registry:
            server.crash(ServeError("container exited with status 1"))
            with pytest.raises(ServeError, match="status 1"):
                await registry.run(asyncio.sleep(10))

    @pytest.mark.asyncio
    async def test_clean_stop_before_work_finishes_is_an_error(self, make_server):
        server = make_server(5001)
        async with EphemeralRegistry(server) as registry:
            server.crash(None)
            with pytest.raises(ServeError, match="stopped before"):
                await registry.run(asyncio.sleep(10))


class TestShutdown:
    @pytest.mark.asyncio
    async def test_shutdown_error_is_logged_not_raised(self, make_server, caplog):
        server = make_server(5001)
        server.shutdown_error = RuntimeError("stop timed out")
        with caplog.at_level(logging.ERROR):
            async with EphemeralRegistry(server) as registry:
                await registry.run(_value(None))
        assert registry.state == RegistryState.STOPPED
        assert "stop timed out" in caplog.text

    @pytest.mark.asyncio
    async def test_shutdown_is_bounded(self, make_server, caplog):
        server = make_server(5001)

        async def hang():
            await asyncio.sleep(10)

        server.shutdown = hang
        registry = EphemeralRegistry(server, shutdown_timeout=0.01)
        await registry.listen()
        registry.serve()
        with caplog.at_level(logging.ERROR):
            await registry.shutdown()
        assert registry.state == RegistryState.STOPPED

    @pytest.mark.asyncio
    async def test_shutdown_is_idempotent(self, make_server):
        server = make_server(5001)
        registry = EphemeralRegistry(server)
        await registry.listen()
        registry.serve()
        await registry.shutdown()
        await registry.shutdown()
        assert registry.state == RegistryState.STOPPED

    @pytest.mark.asyncio
    async def test_shutdown_after_failed_bind(self, make_server):
        server = make_server(5001, fail_bind=True)
        with pytest.raises(BindError):
            async with EphemeralRegistry(server):
                pass
        assert not server.shut_down

    @pytest.mark.asyncio
    async def test_listening_registry_is_shut_down(self, make_server):
        server = make_server(5001)
        registry = EphemeralRegistry(server)
        await registry.listen()
        await registry.shutdown()
        assert server.shut_down
        assert registry.state == RegistryState.STOPPED


async def _value(value):
    return value


async def _fail(error: Exception):
    raise error
