import pytest

from rpckit.errors import (
    ErrorCode,
    RpcError,
    expect_no_params,
    invalid_params,
    to_value,
)


def test_invalid_params_builds_message_and_data():
    error = invalid_params("`params` should have at least 1 argument(s)", "")
    assert error.code == ErrorCode.INVALID_PARAMS
    assert error.message == (
        "Couldn't parse parameters: `params` should have at least 1 argument(s)"
    )
    assert error.data == '""'


def test_invalid_params_code_is_minus_32602():
    assert invalid_params("x", "").to_dict()["code"] == -32602


def test_expect_no_params_accepts_absent_and_empty():
    results = [expect_no_params(None), expect_no_params([])]
    assert results == [None, None]
    with pytest.raises(RpcError) as info:
        expect_no_params([1])
    assert info.value.message == "Couldn't parse parameters: No parameters were expected"


@pytest.mark.parametrize("params", [[1, 2], {"a": 1}, {}])
def test_expect_no_params_rejects_anything_else(params):
    with pytest.raises(RpcError) as info:
        expect_no_params(params)
    assert info.value.code == ErrorCode.INVALID_PARAMS
    assert info.value.data == repr(params)


def test_to_dict_omits_missing_data():
    error = RpcError(ErrorCode.METHOD_NOT_FOUND)
    assert error.to_dict() == {"code": -32601, "message": "Method not found"}


def test_to_dict_keeps_data_and_server_codes():
    error = RpcError(-32091, "Subscription rejected", data=[1])
    assert error.to_dict() == {
        "code": -32091,
        "message": "Subscription rejected",
        "data": [1],
    }


def test_errors_compare_by_content():
    assert RpcError(-32602, "a", "b") == RpcError(ErrorCode.INVALID_PARAMS, "a", "b")
    assert RpcError(-32602, "a") != RpcError(-32602, "b")


class _Wrapped:
    def to_value(self):
        return (1, "two")


def test_to_value_converts_nested_structures():
    assert to_value({"a": (1, 2), "b": [_Wrapped(), None, True]}) == {
        "a": [1, 2],
        "b": [[1, "two"], None, True],
    }


def test_to_value_rejects_unserializable():
    with pytest.raises(TypeError):
        to_value(object())
    with pytest.raises(TypeError):
        to_value({1: "x"})