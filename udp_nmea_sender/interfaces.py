"""Discovery of subnet broadcast addresses from the host's network interfaces."""

import ipaddress
import socket
from typing import Set
import psutil
import structlog

logger = structlog.get_logger(__name__)


def list_broadcast_addresses() -> Set[str]:
    """
    Compute the broadcast address of every non-loopback IPv4 subnet the host is on.

    Returns:
        Deduplicated set of broadcast addresses
    """
    result: Set[str] = set()

    for name, addresses in psutil.net_if_addrs().items():
        for addr in addresses:
            if addr.family != socket.AF_INET or not addr.netmask:
                continue

            try:
                network = ipaddress.IPv4Network(f"{addr.address}/{addr.netmask}", strict=False)
            except ValueError as e:
                logger.warning("Skipping unusable interface address",
                               interface=name,
                               address=addr.address,
                               netmask=addr.netmask,
                               error=str(e))
                continue

            if network.is_loopback:
                continue

            result.add(str(network.broadcast_address))

    logger.debug("Broadcast addresses discovered", addresses=sorted(result))
    return result
