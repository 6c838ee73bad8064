"""
Tests for wiring senders to host events.
"""

from udp_nmea_sender.config import DestinationConfig
from udp_nmea_sender.fanout import subscribed_events, wire


def test_default_events():
    assert subscribed_events(DestinationConfig()) == [
        ("nmea", "nmea0183"),
        ("app", "nmea0183out"),
    ]


def test_additional_events_only():
    config = DestinationConfig(nmea0183=False, nmea0183out=False,
                               additionalEvents=["myEvent", "other"])

    assert subscribed_events(config) == [("app", "myEvent"), ("app", "other")]


def test_wire_registers_on_the_right_channels(host):
    received = []
    config = DestinationConfig(additionalEvents=["myEvent"])

    subscriptions = wire(host, received.append, config)

    assert [s.event_name for s in subscriptions] == ["nmea0183", "nmea0183out", "myEvent"]
    assert host.listeners() == {
        "nmea": {"nmea0183": 1},
        "app": {"nmea0183out": 1, "myEvent": 1},
    }

    host.nmea_channel.emit("nmea0183", "$IN")
    host.app_channel.emit("nmea0183out", "$OUT")
    host.app_channel.emit("myEvent", "hello")
    # nmea0183 on the application channel is a different event
    host.app_channel.emit("nmea0183", "$WRONG")

    assert received == ["$IN", "$OUT", "hello"]


def test_teardown_restores_channels(host):
    existing = host.app_channel.subscribe("nmea0183out", lambda msg: None)
    before = host.listeners()
    send = lambda msg: None

    for _ in range(3):
        subscriptions = wire(host, send, DestinationConfig(additionalEvents=["myEvent"]))
        for subscription in reversed(subscriptions):
            subscription.cancel()
        assert host.listeners() == before

    existing.cancel()


def test_two_destinations_share_an_event(host):
    first, second = [], []

    first_subs = wire(host, first.append, DestinationConfig())
    wire(host, second.append, DestinationConfig())
    for subscription in first_subs:
        subscription.cancel()

    host.nmea_channel.emit("nmea0183", "$GPGGA")

    assert first == []
    assert second == ["$GPGGA"]
