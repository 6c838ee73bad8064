"""
Tests for event channels and subscription records.
"""

from structlog.testing import capture_logs

from udp_nmea_sender.events import EventChannel


def test_emit_reaches_listeners_in_order():
    channel = EventChannel("app")
    received = []
    channel.subscribe("nmea0183out", lambda msg: received.append(("first", msg)))
    channel.subscribe("nmea0183out", lambda msg: received.append(("second", msg)))

    delivered = channel.emit("nmea0183out", "$GPGLL")

    assert delivered == 2
    assert received == [("first", "$GPGLL"), ("second", "$GPGLL")]


def test_emit_without_listeners():
    channel = EventChannel("app")
    assert channel.emit("nothing", "x") == 0


def test_same_handler_registered_twice_is_two_registrations():
    channel = EventChannel("app")
    received = []
    first = channel.subscribe("myEvent", received.append)
    channel.subscribe("myEvent", received.append)

    assert first.cancel()
    channel.emit("myEvent", "hello")

    assert received == ["hello"]
    assert channel.listener_count("myEvent") == 1


def test_cancel_is_idempotent():
    channel = EventChannel("nmea")
    subscription = channel.subscribe("nmea0183", lambda msg: None)

    assert subscription.cancel()
    assert not subscription.cancel()
    assert not channel.unsubscribe(12345)
    assert channel.listener_count() == 0
    assert channel.event_names() == []


def test_failing_listener_does_not_block_others():
    channel = EventChannel("app")
    received = []

    def broken(msg):
        raise RuntimeError("boom")

    channel.subscribe("myEvent", broken)
    channel.subscribe("myEvent", received.append)

    assert channel.emit("myEvent", "hello") == 2
    assert received == ["hello"]


def test_listener_counts():
    channel = EventChannel("app")
    channel.subscribe("a", lambda msg: None)
    channel.subscribe("b", lambda msg: None)
    channel.subscribe("b", lambda msg: None)

    assert channel.listener_count("a") == 1
    assert channel.listener_count("b") == 2
    assert channel.listener_count() == 3
    assert sorted(channel.event_names()) == ["a", "b"]


def test_listener_changes_are_logged_with_event_name():
    channel = EventChannel("nmea")

    def broken(msg):
        raise RuntimeError("boom")

    with capture_logs() as logs:
        subscription = channel.subscribe("nmea0183", broken)
        channel.emit("nmea0183", "$GPGGA")
        subscription.cancel()

    assert [entry["event"] for entry in logs] == [
        "Listener registered", "Event listener failed", "Listener removed"
    ]
    assert all(entry["event_name"] == "nmea0183" for entry in logs)
    assert logs[1]["error"] == "boom"
