from __future__ import annotations

import ipaddress
import logging
import socket
from dataclasses import dataclass

import psutil

logger = logging.getLogger(__name__)


class EnumerationError(RuntimeError):
    """The host's network interface table could not be read."""


@dataclass(frozen=True)
class Subnet:
    interface: str
    address: ipaddress.IPv4Address
    network: ipaddress.IPv4Network

    def __str__(self) -> str:
        return str(self.network)


def _is_loopback(stats: object) -> bool:
    # psutil only reports flags on newer releases
    flags = getattr(stats, "flags", "") or ""
    return "loopback" in flags.split(",")


def _interface_subnets(name: str, addresses: list) -> list[Subnet]:
    subnets: list[Subnet] = []
    for addr in addresses:
        if addr.family != socket.AF_INET or not addr.netmask:
            continue
        interface = ipaddress.IPv4Interface(f"{addr.address}/{addr.netmask}")
        if interface.ip.is_loopback:
            continue
        subnets.append(Subnet(interface=name, address=interface.ip, network=interface.network))
    return subnets


def list_local_networks() -> list[Subnet]:
    """Return the IPv4 subnets of every up, non-loopback interface.

    Raises EnumerationError when the interface table itself is unavailable.
    An interface whose addresses cannot be read is logged and skipped.
    """
    try:
        stats = psutil.net_if_stats()
        addrs = psutil.net_if_addrs()
    except (OSError, RuntimeError, psutil.Error) as exc:
        raise EnumerationError(str(exc) or exc.__class__.__name__) from exc

    networks: list[Subnet] = []
    for name, iface_stats in stats.items():
        if not iface_stats.isup or _is_loopback(iface_stats):
            continue

        try:
            subnets = _interface_subnets(name, addrs.get(name, []))
        except (ValueError, TypeError) as exc:
            logger.warning("Error getting addresses for interface %s: %s", name, exc)
            continue

        for subnet in subnets:
            logger.info(
                "Found network: interface=%s ip=%s network=%s", name, subnet.address, subnet.network
            )
        networks.extend(subnets)

    if not networks:
        logger.info("No active networks found.")
    return networks
