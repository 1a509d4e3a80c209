"""Data structures describing desired and applied interface state.

These dataclasses are shared by the address and route reconcilers, the driver
and the daemon configuration loaders.  They are immutable so a snapshot handed
to :meth:`tunroute.driver.TunRouter.reconcile` cannot change underneath it.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple, Union

from .errors import ConfigurationError
from .readiness import RetryPolicy

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

# Socket buffer sizes and forwarding knobs applied when the tunnel comes up.
# Buffers of at least 7MB avoid drops under load.
DEFAULT_SYSCTLS: Tuple[str, ...] = (
    "net.inet.udp.recvspace=1048576",
    "net.inet.udp.sendspace=1048576",
    "net.inet.tcp.recvspace=1048576",
    "net.inet.tcp.sendspace=1048576",
    "net.inet.ip.forwarding=1",
    "kern.ipc.maxsockbuf=16777216",
    "kern.sbmax=16777216",
)

DEFAULT_BOOTSTRAP_ADDRESS = "100.64.0.1/32"

# A single /48 covers the tunnel's whole IPv6 range, so no per-destination
# IPv6 routes are needed.
IPV6_LOCAL_PREFIX_LEN = 48


@dataclass(frozen=True, order=True)
class Prefix:
    """An address plus mask length.

    Unlike :class:`ipaddress.IPv4Network` the host bits are kept, so
    ``10.0.0.1/24`` and ``10.0.0.2/24`` are different prefixes.  The sort
    order (family, address, bits) is what the reconcilers use to issue
    commands deterministically.
    """

    version: int = field(init=False, repr=False)
    address: IPAddress
    bits: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "version", self.address.version)
        if not 0 <= self.bits <= self.address.max_prefixlen:
            raise ConfigurationError(
                f"invalid mask length {self.bits} for {self.address}"
            )

    @classmethod
    def parse(cls, value: Union[str, "Prefix"]) -> "Prefix":
        """Parse ``addr/bits``; a bare address becomes a host prefix."""

        if isinstance(value, Prefix):
            return value
        text = str(value).strip()
        if not text:
            raise ConfigurationError("prefix value cannot be empty")
        addr_text, sep, bits_text = text.partition("/")
        try:
            address = ipaddress.ip_address(addr_text)
        except ValueError as exc:
            raise ConfigurationError(f"invalid prefix {text!r}: {exc}") from exc
        if not sep:
            return cls(address, address.max_prefixlen)
        try:
            bits = int(bits_text)
        except ValueError as exc:
            raise ConfigurationError(f"invalid mask length in {text!r}") from exc
        return cls(address, bits)

    @property
    def is_ipv4(self) -> bool:
        return self.version == 4

    @property
    def is_ipv6(self) -> bool:
        return self.version == 6

    @property
    def family(self) -> str:
        """Address family keyword understood by ``ifconfig`` and ``route``."""

        return "inet" if self.is_ipv4 else "inet6"

    def with_bits(self, bits: int) -> "Prefix":
        return Prefix(self.address, bits)

    def masked(self) -> "Prefix":
        """Return the prefix with host bits cleared."""

        network = ipaddress.ip_network(f"{self.address}/{self.bits}", strict=False)
        return Prefix(network.network_address, self.bits)

    def __str__(self) -> str:
        return f"{self.address}/{self.bits}"


def parse_prefixes(values: Iterable[Union[str, Prefix]]) -> Tuple[Prefix, ...]:
    return tuple(Prefix.parse(v) for v in values)


@dataclass(frozen=True)
class AddressPair:
    """At most one local address per family."""

    v4: Optional[Prefix] = None
    v6: Optional[Prefix] = None

    def for_family(self, prefix: Prefix) -> Optional[Prefix]:
        """Return the local address matching ``prefix``'s family."""

        return self.v4 if prefix.is_ipv4 else self.v6


def normalize_ipv6_local(prefix: Optional[Prefix]) -> Optional[Prefix]:
    if prefix is None:
        return None
    return prefix.with_bits(IPV6_LOCAL_PREFIX_LEN).masked()


def split_local_addrs(local_addrs: Sequence[Prefix]) -> AddressPair:
    """Pick the IPv4 and IPv6 local address out of ``local_addrs``.

    The IPv6 entry is normalized to a /48.  More than one address of a family
    is rejected, since the interface carries a single alias per family.
    """

    v4 = [p for p in local_addrs if p.is_ipv4]
    v6 = [p for p in local_addrs if p.is_ipv6]
    if len(v4) > 1 or len(v6) > 1:
        raise ConfigurationError(
            "multiple local addresses per address family are not supported: "
            + ", ".join(str(p) for p in local_addrs)
        )
    return AddressPair(
        v4=v4[0] if v4 else None,
        v6=normalize_ipv6_local(v6[0] if v6 else None),
    )


@dataclass(frozen=True)
class DesiredConfig:
    """Desired addresses and routes for one interface.

    Attributes
    ----------
    local_addrs:
        Local addresses to assign; at most one IPv4 and one IPv6 entry.
    routes:
        Destination prefixes that should be reachable via the interface.
    """

    local_addrs: Tuple[Prefix, ...] = ()
    routes: frozenset = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "local_addrs", parse_prefixes(self.local_addrs))
        object.__setattr__(self, "routes", frozenset(parse_prefixes(self.routes)))

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> Optional["DesiredConfig"]:
        """Build a config from a decoded JSON/YAML mapping.

        ``None`` is passed through so a null document requests teardown.
        """

        if payload is None:
            return None
        if not isinstance(payload, Mapping):
            raise ConfigurationError("desired configuration must be a mapping")
        local_addrs = payload.get("local_addrs") or []
        routes = payload.get("routes") or []
        if not isinstance(local_addrs, (list, tuple)) or not isinstance(
            routes, (list, tuple)
        ):
            raise ConfigurationError("'local_addrs' and 'routes' must be lists")
        try:
            return cls(local_addrs=tuple(local_addrs), routes=frozenset(routes))
        except TypeError as exc:
            raise ConfigurationError(f"invalid prefix entry: {exc}") from exc

    def to_dict(self) -> dict:
        return {
            "local_addrs": [str(p) for p in self.local_addrs],
            "routes": [str(p) for p in sorted(self.routes)],
        }


EMPTY_CONFIG = DesiredConfig()


@dataclass(frozen=True)
class AppliedState:
    """What was last attempted on the interface, not what was confirmed."""

    local_v4: Optional[Prefix] = None
    local_v6: Optional[Prefix] = None
    routes: frozenset = frozenset()

    @property
    def addresses(self) -> AddressPair:
        return AddressPair(v4=self.local_v4, v6=self.local_v6)

    def is_empty(self) -> bool:
        return self.local_v4 is None and self.local_v6 is None and not self.routes


@dataclass(frozen=True)
class RouterSettings:
    """Per-interface knobs for :class:`tunroute.driver.TunRouter`."""

    interface: str
    bootstrap_address: Optional[str] = DEFAULT_BOOTSTRAP_ADDRESS
    sysctls: Sequence[str] = DEFAULT_SYSCTLS
    readiness: RetryPolicy = field(default_factory=RetryPolicy)
    command_timeout: Optional[float] = None
    ifconfig: str = "ifconfig"
    route: str = "route"
    sysctl: str = "sysctl"

    def __post_init__(self) -> None:
        if not self.interface:
            raise ConfigurationError("interface name cannot be empty")
        if self.bootstrap_address:
            Prefix.parse(self.bootstrap_address)
