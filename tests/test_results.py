# tests/test_results.py
import pytest

from mongo_driver import DatabaseError, OperationResult, ResultStatus


def test_only_success_is_truthy():
    assert OperationResult.success(0)
    assert not OperationResult.not_found()
    assert not OperationResult.connection_unavailable(DatabaseError("down"))
    assert not OperationResult.failed(DatabaseError("boom"))


def test_unwrap():
    assert OperationResult.success({"a": 1}).unwrap() == {"a": 1}
    assert OperationResult.not_found().unwrap() is None

    with pytest.raises(DatabaseError, match="boom"):
        OperationResult.failed(DatabaseError("boom")).unwrap()


def test_status_values():
    assert OperationResult.not_found().status is ResultStatus.NOT_FOUND
    assert ResultStatus.CONNECTION_UNAVAILABLE == "connection_unavailable"
