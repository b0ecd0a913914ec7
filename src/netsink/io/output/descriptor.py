from __future__ import annotations

from dataclasses import dataclass

from netsink.errors import DescriptorError

STREAM_PROTOCOL_PREFIX = "tcp"


@dataclass(frozen=True)
class Descriptor:
    """Parsed ``protocol:address`` connection string.

    Only the first colon separates the protocol; the address is passed to the
    dialer verbatim, so ``tcp:host.example.com:512`` keeps ``host.example.com:512``.
    """

    raw: str
    protocol: str
    address: str

    @property
    def append_newline(self) -> bool:
        return self.protocol.startswith(STREAM_PROTOCOL_PREFIX)

    def __str__(self) -> str:
        return self.raw


def parse_descriptor(raw: str) -> Descriptor:
    if ":" not in raw:
        raise DescriptorError(
            f"Invalid connection descriptor '{raw}': expected protocol:address"
        )
    protocol, address = raw.split(":", 1)
    if not protocol:
        raise DescriptorError(f"Invalid connection descriptor '{raw}': missing protocol")
    if not address:
        raise DescriptorError(f"Invalid connection descriptor '{raw}': missing address")
    return Descriptor(raw=raw, protocol=protocol, address=address)
