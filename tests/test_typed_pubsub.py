import json

import pytest

from rpckit.errors import ErrorCode, RpcError
from rpckit.pubsub.types import SubscriptionId, TransportError
from rpckit.typed_pubsub import TypedSubscriber


def test_assign_id_resolves_future():
    subscriber, id_future, _messages = TypedSubscriber.new_test("hello")
    sink = subscriber.assign_id(SubscriptionId(5))
    assert id_future.result(timeout=1) == SubscriptionId(5)
    assert sink.subscription_id == SubscriptionId(5)


def test_assign_plain_int_id():
    subscriber, id_future, _messages = TypedSubscriber.new_test("hello")
    subscriber.assign_id(7)
    assert id_future.result(timeout=1) == SubscriptionId(7)


def test_notify_sends_result_message():
    subscriber, _id_future, messages = TypedSubscriber.new_test("hello")
    sink = subscriber.assign_id(SubscriptionId(5))
    sink.notify("Hello World!")
    message = messages.get_nowait()
    assert message == (
        '{"jsonrpc":"2.0","method":"hello",'
        '"params":{"result":"Hello World!","subscription":5}}'
    )


def test_notify_error_sends_error_object():
    subscriber, _id_future, messages = TypedSubscriber.new_test("hello")
    sink = subscriber.assign_id(SubscriptionId("abc"))
    error = RpcError(ErrorCode.INVALID_PARAMS, "Invalid subscription.")
    sink.notify_error(error)
    params = json.loads(messages.get_nowait())["params"]
    assert params == {"error": error.to_dict(), "subscription": "abc"}


def test_reject_sets_error():
    subscriber, id_future, _messages = TypedSubscriber.new_test("hello")
    error = RpcError(
        ErrorCode.INVALID_PARAMS, "Rejecting subscription - invalid parameters provided."
    )
    subscriber.reject(error)
    assert id_future.exception(timeout=1) == error


def test_settling_twice_raises():
    subscriber, _id_future, _messages = TypedSubscriber.new_test("hello")
    subscriber.reject(RpcError(ErrorCode.INVALID_REQUEST))
    with pytest.raises(TransportError):
        subscriber.assign_id(SubscriptionId(1))


def test_notify_unserializable_raises():
    subscriber, _id_future, messages = TypedSubscriber.new_test("hello")
    sink = subscriber.assign_id(SubscriptionId(1))
    with pytest.raises(TypeError):
        sink.notify(object())
    assert messages.empty()