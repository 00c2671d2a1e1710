from __future__ import annotations

import ipaddress
import logging
import socket
from collections.abc import Callable, Iterable, Iterator
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait

from rtsp_scout.interfaces import Subnet, list_local_networks
from rtsp_scout.settings import RTSP_PORT, ScanSettings

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 2.0


def increment_address(address: ipaddress.IPv4Address) -> ipaddress.IPv4Address:
    """Add one to a big-endian IPv4 address, carrying from the last octet.

    255.255.255.255 wraps to 0.0.0.0.
    """
    octets = bytearray(address.packed)
    for index in reversed(range(len(octets))):
        octets[index] = (octets[index] + 1) & 0xFF
        if octets[index]:
            break
    return ipaddress.IPv4Address(bytes(octets))


class AddressRange:
    """Every address of an IPv4 network in ascending order, boundaries included."""

    def __init__(self, network: ipaddress.IPv4Network | Subnet | str) -> None:
        if isinstance(network, Subnet):
            network = network.network
        elif isinstance(network, str):
            network = ipaddress.IPv4Network(network, strict=False)
        self.network = network

    def __len__(self) -> int:
        return self.network.num_addresses

    def __iter__(self) -> Iterator[str]:
        current = self.network.network_address
        while current in self.network:
            yield str(current)
            following = increment_address(current)
            if following <= current:
                return
            current = following


def probe_address(address: str, port: int = RTSP_PORT, timeout: float = PROBE_TIMEOUT) -> bool:
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.settimeout(timeout)
            return sock.connect_ex((address, port)) == 0
    except OSError:
        return False


def scan_addresses(
    addresses: Iterable[str],
    *,
    port: int = RTSP_PORT,
    timeout: float = PROBE_TIMEOUT,
    max_workers: int = 256,
    probe: Callable[[str, int, float], bool] | None = None,
) -> list[str]:
    """Probe every address concurrently and return the reachable ones.

    Addresses are pulled lazily so that no more than ``max_workers * 2``
    probes are queued at once. Results are collected by the calling thread
    in completion order, and the call returns only once every probe is done.
    """
    if max_workers < 1:
        raise ValueError("max_workers must be at least 1")
    check = probe or probe_address
    window = max_workers * 2
    devices: list[str] = []
    pending: dict[Future[bool], str] = {}

    def collect(done: Iterable[Future[bool]]) -> None:
        for future in done:
            address = pending.pop(future)
            if future.result():
                devices.append(address)

    source = iter(addresses)
    first = next(source, None)
    if first is None:
        return devices

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="probe") as executor:
        pending[executor.submit(check, first, port, timeout)] = first
        for address in source:
            if len(pending) >= window:
                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                collect(done)
            pending[executor.submit(check, address, port, timeout)] = address
        while pending:
            done, _ = wait(pending, return_when=FIRST_COMPLETED)
            collect(done)
    return devices


def discover_devices(settings: ScanSettings | None = None) -> list[str]:
    """Scan every local subnet in turn and return the reachable addresses.

    EnumerationError from the interface lookup propagates unchanged.
    """
    settings = settings or ScanSettings()
    all_devices: list[str] = []
    for subnet in list_local_networks():
        candidates = AddressRange(subnet)
        logger.info("Scanning %s (%d addresses)", subnet.network, len(candidates))
        all_devices.extend(
            scan_addresses(
                candidates,
                port=settings.probe_port,
                timeout=settings.probe_timeout,
                max_workers=settings.max_workers,
            )
        )
    logger.info("Found cameras: %s", all_devices)
    return all_devices
