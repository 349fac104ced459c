# tests/test_retry.py
from unittest.mock import MagicMock

import pytest
from pymongo.errors import AutoReconnect, OperationFailure

from mongo_driver import ApplicationError, DatabaseError, RetryPolicy


def test_default_policy_is_one_retry_without_backoff():
    policy = RetryPolicy()
    assert policy.retries == 1
    assert policy.backoff == 0.0
    assert policy.attempts == 2


def test_returns_first_success():
    fn = MagicMock(side_effect=[AutoReconnect("blip"), "ok"])
    assert RetryPolicy(retries=1).run("op", fn) == "ok"
    assert fn.call_count == 2


def test_gives_up_after_all_attempts():
    err = OperationFailure("write conflict")
    fn = MagicMock(side_effect=err)

    with pytest.raises(DatabaseError, match="op failed") as exc:
        RetryPolicy(retries=2).run("op", fn)
    assert fn.call_count == 3
    assert exc.value.__cause__ is err


def test_zero_retries_calls_once():
    fn = MagicMock(side_effect=AutoReconnect("down"))
    with pytest.raises(DatabaseError):
        RetryPolicy(retries=0).run("op", fn)
    assert fn.call_count == 1


def test_backoff_grows_linearly(monkeypatch):
    sleeps = []
    monkeypatch.setattr("mongo_driver.retry.time.sleep", sleeps.append)
    fn = MagicMock(side_effect=[AutoReconnect("a"), AutoReconnect("b"), "ok"])

    assert RetryPolicy(retries=2, backoff=0.5).run("op", fn) == "ok"
    assert sleeps == [0.5, 1.0]


def test_non_driver_errors_are_not_retried():
    fn = MagicMock(side_effect=KeyError("boom"))
    with pytest.raises(KeyError):
        RetryPolicy(retries=3).run("op", fn)
    assert fn.call_count == 1


@pytest.mark.parametrize("kwargs", [{"retries": -1}, {"backoff": -0.1}])
def test_rejects_negative_settings(kwargs):
    with pytest.raises(ApplicationError):
        RetryPolicy(**kwargs)
