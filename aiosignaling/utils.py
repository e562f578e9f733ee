import socket

import netifaces

# address family, loopback address
LOOPBACKS = [(socket.AF_INET, "127.0.0.1"), (socket.AF_INET6, "::1")]


def get_host_addresses(use_ipv4: bool, use_ipv6: bool) -> list[str]:
    """
    List the addresses a relay bound to a wildcard host can be reached on.

    Loopback addresses and scoped IPv6 addresses are left out.
    """
    families = [
        (family, loopback)
        for (family, loopback), wanted in zip(LOOPBACKS, (use_ipv4, use_ipv6))
        if wanted
    ]
    addresses = []
    for interface in netifaces.interfaces():
        entries = netifaces.ifaddresses(interface)
        for family, loopback in families:
            addresses.extend(
                entry["addr"]
                for entry in entries.get(family, [])
                if entry["addr"] != loopback and "%" not in entry["addr"]
            )
    return addresses


def next_connection_id() -> int:
    connection_id = next_connection_id.counter  # type: ignore[attr-defined]
    next_connection_id.counter += 1  # type: ignore[attr-defined]
    return connection_id


next_connection_id.counter = 1  # type: ignore[attr-defined]
