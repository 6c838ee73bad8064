"""
Tests for broadcast address discovery.
"""

import socket
from collections import namedtuple

import psutil
import pytest

from udp_nmea_sender import interfaces
from udp_nmea_sender.interfaces import list_broadcast_addresses

snicaddr = namedtuple("snicaddr", ["family", "address", "netmask", "broadcast", "ptp"])


def ipv4(address, netmask):
    return snicaddr(socket.AF_INET, address, netmask, None, None)


@pytest.fixture
def interface_table(monkeypatch):
    """Replace the host's interface table with a fixed one."""
    def install(table):
        monkeypatch.setattr(interfaces.psutil, "net_if_addrs", lambda: table)
    return install


def test_same_subnet_reported_once(interface_table):
    interface_table({
        "eth0": [ipv4("192.168.1.5", "255.255.255.0")],
        "eth1": [ipv4("192.168.1.9", "255.255.255.0")],
    })

    assert list_broadcast_addresses() == {"192.168.1.255"}


def test_loopback_excluded(interface_table):
    interface_table({
        "lo": [ipv4("127.0.0.1", "255.0.0.0")],
        "eth0": [ipv4("10.1.2.3", "255.255.0.0")],
    })

    assert list_broadcast_addresses() == {"10.1.255.255"}


def test_non_ipv4_excluded(interface_table):
    interface_table({
        "eth0": [
            snicaddr(psutil.AF_LINK, "00:11:22:33:44:55", None, "ff:ff:ff:ff:ff:ff", None),
            snicaddr(socket.AF_INET6, "fe80::1%eth0", "ffff:ffff:ffff:ffff::", None, None),
            ipv4("172.16.5.20", "255.255.255.240"),
        ],
    })

    assert list_broadcast_addresses() == {"172.16.5.31"}


def test_address_without_netmask_skipped(interface_table):
    interface_table({
        "tun0": [ipv4("10.8.0.2", None)],
    })

    assert list_broadcast_addresses() == set()


def test_several_subnets(interface_table):
    interface_table({
        "eth0": [ipv4("192.168.1.5", "255.255.255.0")],
        "wlan0": [ipv4("192.168.4.1", "255.255.252.0")],
    })

    assert list_broadcast_addresses() == {"192.168.1.255", "192.168.7.255"}


def test_empty_table(interface_table):
    interface_table({})

    assert list_broadcast_addresses() == set()
