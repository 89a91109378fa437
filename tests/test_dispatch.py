import pytest

from rpckit.tcp.dispatch import (
    Dispatcher,
    NoSuchPeerError,
    PushMessageError,
    SenderChannels,
)

PEER = ("127.0.0.1", 40000)


def test_push_message_reaches_sender():
    channels = SenderChannels()
    received = []
    channels.insert(PEER, received.append)
    Dispatcher(channels).push_message(PEER, "ping")
    assert received == ["ping"]


def test_unknown_peer_raises():
    dispatcher = Dispatcher()
    with pytest.raises(NoSuchPeerError):
        dispatcher.push_message(PEER, "ping")


def test_no_such_peer_is_push_error():
    with pytest.raises(PushMessageError):
        Dispatcher().push_message(PEER, "ping")


def test_send_failure_is_wrapped():
    channels = SenderChannels()

    def broken(_msg):
        raise OSError("closed")

    channels.insert(PEER, broken)
    with pytest.raises(PushMessageError) as info:
        Dispatcher(channels).push_message(PEER, "ping")
    assert isinstance(info.value.__cause__, OSError)
    assert not isinstance(info.value, NoSuchPeerError)


def test_connection_tracking():
    channels = SenderChannels()
    dispatcher = Dispatcher(channels)
    assert dispatcher.peer_count() == 0
    assert not dispatcher.is_connected(PEER)
    channels.insert(PEER, lambda _m: None)
    assert dispatcher.peer_count() == 1
    assert dispatcher.is_connected(PEER)
    channels.remove(PEER)
    assert dispatcher.peer_count() == 0
    assert not dispatcher.is_connected(PEER)


def test_channels_are_shared():
    channels = SenderChannels()
    first, second = Dispatcher(channels), Dispatcher(channels)
    channels.insert(PEER, lambda _m: None)
    assert first.peer_count() == second.peer_count() == 1
    assert channels.peers() == [PEER]