"""
Tests for the configuration schema offered to the host UI.
"""

from udp_nmea_sender import schema
from udp_nmea_sender.schema import plugin_schema


def test_broadcast_choices_from_interfaces(monkeypatch):
    monkeypatch.setattr(schema, "list_broadcast_addresses",
                        lambda: {"192.168.1.255", "10.0.0.255"})

    items = plugin_schema()["properties"]["destinations"]["items"]
    broadcast = items["properties"]["broadcastAddress"]

    assert broadcast["enum"] == ["-", "10.0.0.255", "192.168.1.255"]
    assert broadcast["default"] == "-"


def test_destination_fields(monkeypatch):
    monkeypatch.setattr(schema, "list_broadcast_addresses", lambda: set())

    properties = plugin_schema()["properties"]["destinations"]["items"]["properties"]

    assert set(properties) == {
        "ipaddress", "broadcastAddress", "port", "nmea0183",
        "nmea0183out", "additionalEvents", "lineDelimiter",
    }
    assert properties["port"]["default"] == 2000
    assert properties["nmea0183"]["default"] is True
    assert properties["nmea0183out"]["default"] is True
    assert properties["additionalEvents"]["items"] == {"type": "string"}
    assert properties["lineDelimiter"]["enum"] == ["None", "LF", "CRLF"]
    assert properties["lineDelimiter"]["default"] == "None"
    assert properties["broadcastAddress"]["enum"] == ["-"]
