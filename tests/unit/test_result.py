"""Unit tests for the OpResult envelope."""
from __future__ import annotations

import asyncio

import pytest

from apiclient.app.domain.result import OpResult, OpStatus, ResultError


def _chained_error() -> RuntimeError:
    try:
        try:
            raise ValueError("connection reset")
        except ValueError as inner:
            raise RuntimeError("send failed") from inner
    except RuntimeError as outer:
        return outer


def test_success_carries_payload_and_status_code():
    result = OpResult.success({"id": 1}, 200)

    assert result.status is OpStatus.SUCCESS
    assert result.is_success is True
    assert result.payload == {"id": 1}
    assert result.status_code == 200
    assert result.message == ""
    assert result.error is None


def test_non_success_result_cannot_carry_payload():
    with pytest.raises(ValueError, match="payload"):
        OpResult(OpStatus.FAILED, payload="data")
    with pytest.raises(ValueError, match="payload"):
        OpResult(OpStatus.CANCELLED, payload=0)


def test_failed_result_is_inspectable_without_raising():
    result = OpResult.failed(message="boom", status_code=500)

    assert result.is_failed is True
    assert result.payload is None
    assert result.status_code == 500
    assert result.full_message() == "boom"


def test_cancelled_defaults_to_not_applicable_status_code():
    result = OpResult.cancelled()

    assert result.is_cancelled is True
    assert result.status_code == 0
    assert result.payload is None


def test_full_message_lists_causes_innermost_first():
    result = OpResult.failed(_chained_error(), "Request failed", 500)

    assert result.full_message() == "Request failed\nconnection reset\nsend failed"


def test_full_message_without_outer_message_uses_cause_chain_only():
    result = OpResult.failed(_chained_error())

    assert result.full_message() == "connection reset\nsend failed"


def test_full_message_uses_exception_type_when_message_is_empty():
    result = OpResult.failed(TimeoutError())

    assert result.full_message() == "TimeoutError"


def test_then_runs_next_stage_on_success():
    result = OpResult.success(2, 200).then(lambda value: OpResult.success(value * 10, 201))

    assert result.payload == 20
    assert result.status_code == 201


def test_then_propagates_failure_unchanged():
    error = RuntimeError("down")
    failed = OpResult.failed(error, "Timeout", 408)
    called = []

    result = failed.then(lambda value: called.append(value) or OpResult.success(value))

    assert called == []
    assert result.status is OpStatus.FAILED
    assert result.status_code == 408
    assert result.message == "Timeout"
    assert result.error is error


def test_then_async_keeps_cancelled_status():
    async def next_stage(value):
        return OpResult.success(value)

    result = asyncio.run(OpResult.cancelled("stop").then_async(next_stage))

    assert result.status is OpStatus.CANCELLED
    assert result.message == "stop"


def test_propagate_rejects_success():
    with pytest.raises(ValueError):
        OpResult.success(1).propagate()


def test_unwrap_raises_result_error_for_failure():
    failed = OpResult.failed(message="not found", status_code=404)

    with pytest.raises(ResultError) as exc_info:
        failed.unwrap()

    assert exc_info.value.result is failed
    assert OpResult.success("ok").unwrap() == "ok"


def test_payload_less_success():
    result = OpResult.success(None, 204)

    assert result.is_success is True
    assert result.payload is None
