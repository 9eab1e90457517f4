import pytest

from tailor.core.errors import ErrorKind, MalformedModelOutputError, TransportError
from tailor.core.retry import RetryPolicy, execute, is_retryable_error


def _flaky(failures: int, error: Exception, result="ok"):
    calls = {"n": 0}

    async def op():
        calls["n"] += 1
        if calls["n"] <= failures:
            raise error
        return result

    return op, calls


@pytest.mark.asyncio
async def test_recovers_after_two_transient_failures(policy, sleep):
    op, calls = _flaky(2, TransportError("reset", kind=ErrorKind.NETWORK))
    assert await execute(op, policy, sleep=sleep) == "ok"
    assert calls["n"] == 3
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_exhausted_attempts_reraise_original_error(policy, sleep):
    err = TransportError("gateway", kind=ErrorKind.NETWORK, status=503)
    op, calls = _flaky(99, err)
    with pytest.raises(TransportError) as exc_info:
        await execute(op, policy, sleep=sleep)
    assert exc_info.value is err
    assert calls["n"] == policy.max_attempts
    assert len(sleep.delays) == policy.max_attempts - 1


@pytest.mark.asyncio
async def test_terminal_error_is_not_retried(policy, sleep):
    op, calls = _flaky(99, MalformedModelOutputError("not json"))
    with pytest.raises(MalformedModelOutputError):
        await execute(op, policy, sleep=sleep)
    assert calls["n"] == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_delay_is_capped(sleep):
    policy = RetryPolicy(max_attempts=5, initial_delay_s=1.0, max_delay_s=3.0, multiplier=2.0)
    op, _ = _flaky(99, TransportError("slow", kind=ErrorKind.TIMEOUT))
    with pytest.raises(TransportError):
        await execute(op, policy, sleep=sleep)
    assert sleep.delays == [1.0, 2.0, 3.0, 3.0]


@pytest.mark.asyncio
async def test_on_retry_callback_sees_each_failed_attempt(policy, sleep):
    seen = []
    op, _ = _flaky(2, TransportError("busy", kind=ErrorKind.RATE_LIMITED, status=429))
    await execute(op, policy, sleep=sleep, on_retry=lambda attempt, e: seen.append((attempt, e.kind)))
    assert seen == [(1, ErrorKind.RATE_LIMITED), (2, ErrorKind.RATE_LIMITED)]


@pytest.mark.asyncio
async def test_custom_predicate(sleep):
    policy = RetryPolicy(max_attempts=3, retryable=lambda e: isinstance(e, KeyError))
    op, calls = _flaky(1, KeyError("x"))
    assert await execute(op, policy, sleep=sleep) == "ok"
    assert calls["n"] == 2


@pytest.mark.asyncio
async def test_jitter_stays_within_bound(sleep):
    policy = RetryPolicy(max_attempts=3, initial_delay_s=1.0, multiplier=2.0, max_delay_s=10.0, jitter=0.5)
    op, _ = _flaky(2, TransportError("reset", kind=ErrorKind.NETWORK))
    await execute(op, policy, sleep=sleep)
    first, second = sleep.delays
    assert 1.0 <= first <= 1.5
    assert 2.0 <= second <= 2.5


@pytest.mark.asyncio
async def test_single_attempt_policy_never_sleeps(sleep):
    policy = RetryPolicy(max_attempts=1)
    op, calls = _flaky(99, TransportError("reset", kind=ErrorKind.NETWORK))
    with pytest.raises(TransportError):
        await execute(op, policy, sleep=sleep)
    assert calls["n"] == 1
    assert sleep.delays == []


@pytest.mark.parametrize(
    "error,expected",
    [
        (TransportError("x", kind=ErrorKind.NETWORK), True),
        (TransportError("x", kind=ErrorKind.TIMEOUT), True),
        (TransportError("x", kind=ErrorKind.RATE_LIMITED, status=429), True),
        (TransportError("x", kind=ErrorKind.UNKNOWN, status=502), True),
        (TransportError("x", kind=ErrorKind.UNKNOWN, status=400), False),
        (MalformedModelOutputError("x"), False),
        (TimeoutError(), True),
        (ConnectionResetError(), True),
        (ValueError("network timeout"), False),
    ],
)
def test_default_classification_uses_kind_not_message(error, expected):
    assert is_retryable_error(error) is expected
