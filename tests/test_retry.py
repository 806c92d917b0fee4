import pytest

from oceanstor_client import codes
from oceanstor_client.context import CallContext
from oceanstor_client.exceptions import CallCancelledError, RequestError
from oceanstor_client.retry import CallResult, RetryPolicy, retry_call


def _counting(outcomes):
    calls = []

    def unit():
        calls.append(len(calls))
        return outcomes[min(len(calls) - 1, len(outcomes) - 1)]

    return unit, calls


def test_retryable_failure_is_attempted_max_attempts_times():
    sleeps = []
    policy = RetryPolicy(max_attempts=6, interval=2.0)
    unit, calls = _counting([CallResult(code=codes.SYSTEM_BUSY, error=RequestError("busy"))])

    with pytest.raises(RequestError, match="busy"):
        retry_call(policy, unit, sleep=sleeps.append)

    assert len(calls) == 6
    assert sleeps == [2.0] * 5


def test_success_after_retry_returns_result():
    policy = RetryPolicy(interval=0)
    unit, calls = _counting(
        [
            CallResult(code=codes.SYSTEM_BUSY_ALT, error=RequestError("busy")),
            CallResult(result={"ID": "1"}, code=codes.SUCCESS),
        ]
    )

    assert retry_call(policy, unit, sleep=lambda _: None) == {"ID": "1"}
    assert len(calls) == 2


def test_success_on_last_allowed_attempt():
    policy = RetryPolicy(max_attempts=4, interval=0)
    busy = CallResult(code=codes.SYSTEM_BUSY, error=RequestError("busy"))
    unit, calls = _counting([busy, busy, busy, CallResult(result="done", code=codes.SUCCESS)])

    assert retry_call(policy, unit, sleep=lambda _: None) == "done"
    assert len(calls) == 4


def test_missing_code_stops_immediately():
    policy = RetryPolicy(interval=0)
    unit, calls = _counting([CallResult(error=RequestError("unreachable"))])

    with pytest.raises(RequestError):
        retry_call(policy, unit, sleep=lambda _: None)

    assert len(calls) == 1


def test_non_retryable_code_stops_immediately():
    policy = RetryPolicy(interval=0)
    unit, calls = _counting([CallResult(code=50331651, error=RequestError("bad param"))])

    with pytest.raises(RequestError):
        retry_call(policy, unit, sleep=lambda _: None)

    assert len(calls) == 1


def test_with_codes_replaces_retry_set():
    policy = RetryPolicy(interval=0).with_codes(codes.FILESYSTEM_RETRY_CODES)
    unit, calls = _counting([CallResult(code=codes.OPERATION_FAILED, error=RequestError("failed"))])

    with pytest.raises(RequestError):
        retry_call(policy, unit, sleep=lambda _: None)

    assert len(calls) == policy.max_attempts


def test_cancelled_context_prevents_first_attempt():
    context = CallContext()
    context.cancel()
    unit, calls = _counting([CallResult(result=1, code=0)])

    with pytest.raises(CallCancelledError):
        retry_call(RetryPolicy(), unit, context=context)

    assert calls == []


def test_policy_validation():
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)
    with pytest.raises(ValueError):
        RetryPolicy(interval=-1)
