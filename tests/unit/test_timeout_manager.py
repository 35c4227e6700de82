"""
Unit tests for bounded calls and failure classification
"""

import asyncio

import httpx
import pytest

from feedguard.resilience.outcome import (
    Failure,
    FailureKind,
    ServerRejectedError,
    Success,
    TransportError,
)
from feedguard.resilience.timeout_manager import (
    TimeoutConfig,
    TimeoutManager,
    bounded_call,
    classify_failure,
)


@pytest.mark.unit
class TestBoundedCall:
    """Test cases for bounded_call"""

    @pytest.mark.asyncio
    async def test_success(self):
        async def op():
            return {"cameras": []}

        outcome = await bounded_call(op, 1.0)

        assert isinstance(outcome, Success)
        assert outcome.value == {"cameras": []}
        assert outcome.ok

    @pytest.mark.asyncio
    async def test_timeout_cancels_operation(self):
        cancelled = asyncio.Event()

        async def hang():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        outcome = await bounded_call(hang, 0.02)
        await asyncio.wait_for(cancelled.wait(), 1.0)

        assert isinstance(outcome, Failure)
        assert outcome.reason.kind is FailureKind.TIMEOUT
        assert not outcome.ok

    @pytest.mark.asyncio
    async def test_late_result_after_timeout_is_ignored(self):
        finished = asyncio.Event()

        async def stubborn():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                await asyncio.sleep(0.01)
                finished.set()
                return "late"

        outcome = await bounded_call(stubborn, 0.02)
        await asyncio.wait_for(finished.wait(), 1.0)
        await asyncio.sleep(0)

        assert outcome.reason.kind is FailureKind.TIMEOUT

    @pytest.mark.asyncio
    async def test_transport_error(self):
        async def op():
            raise TransportError("connection refused")

        outcome = await bounded_call(op, 1.0)

        assert outcome.reason.kind is FailureKind.TRANSPORT_ERROR
        assert outcome.reason.detail == "connection refused"

    @pytest.mark.asyncio
    async def test_server_rejected(self):
        async def op():
            raise ServerRejectedError(503)

        outcome = await bounded_call(op, 1.0)

        assert outcome.reason.kind is FailureKind.SERVER_REJECTED
        assert outcome.reason.status_code == 503

    @pytest.mark.asyncio
    async def test_operation_cancelled_from_inside_is_aborted(self):
        async def op():
            raise asyncio.CancelledError()

        outcome = await bounded_call(op, 1.0)

        assert outcome.reason.kind is FailureKind.ABORTED

    @pytest.mark.asyncio
    async def test_synchronous_raise_is_a_failure(self):
        def op():
            raise RuntimeError("bad request builder")

        outcome = await bounded_call(op, 1.0)

        assert outcome.reason.kind is FailureKind.TRANSPORT_ERROR
        assert "bad request builder" in outcome.reason.detail

    @pytest.mark.asyncio
    async def test_caller_cancellation_propagates(self):
        inner_cancelled = asyncio.Event()

        async def hang():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                inner_cancelled.set()
                raise

        task = asyncio.ensure_future(bounded_call(hang, 5.0))
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        await asyncio.wait_for(inner_cancelled.wait(), 1.0)

    @pytest.mark.asyncio
    async def test_non_positive_timeout_rejected(self):
        async def op():
            return 1

        with pytest.raises(ValueError):
            await bounded_call(op, 0)


@pytest.mark.unit
class TestClassifyFailure:
    """Test cases for classify_failure"""

    def test_httpx_status_error(self):
        request = httpx.Request("GET", "http://localhost/api/cameras/x")
        response = httpx.Response(404, request=request)
        error = httpx.HTTPStatusError("not found", request=request, response=response)

        reason = classify_failure(error)

        assert reason.kind is FailureKind.SERVER_REJECTED
        assert reason.status_code == 404

    def test_any_error_with_status_code(self):
        class ApiError(Exception):
            status_code = 429

        reason = classify_failure(ApiError("slow down"))

        assert reason.kind is FailureKind.SERVER_REJECTED
        assert reason.status_code == 429

    def test_empty_message_uses_type_name(self):
        reason = classify_failure(ConnectionResetError())

        assert reason.kind is FailureKind.TRANSPORT_ERROR
        assert reason.detail == "ConnectionResetError"

    def test_describe(self):
        reason = classify_failure(ServerRejectedError(500, "API request failed: 500"))
        assert reason.describe() == "server rejected request with status 500 (API request failed: 500)"


@pytest.mark.unit
class TestTimeoutManager:
    """Test cases for TimeoutManager"""

    def test_fallback_shares_primary_timeout_by_default(self):
        manager = TimeoutManager(TimeoutConfig(per_attempt=2.0))

        assert manager.primary_timeout == 2.0
        assert manager.fallback_timeout == 2.0

    def test_explicit_fallback_timeout(self):
        manager = TimeoutManager(TimeoutConfig(per_attempt=2.0, fallback=0.5))
        assert manager.fallback_timeout == 0.5

    def test_invalid_config(self):
        with pytest.raises(ValueError):
            TimeoutConfig(per_attempt=0)

    @pytest.mark.asyncio
    async def test_run_fallback(self):
        async def op():
            await asyncio.sleep(10)

        manager = TimeoutManager(TimeoutConfig(per_attempt=5.0, fallback=0.02))
        outcome = await manager.run_fallback(op)

        assert outcome.reason.kind is FailureKind.TIMEOUT
