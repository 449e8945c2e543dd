# services/protocol_registry.py
from __future__ import annotations

import json
import logging
import re
from enum import Enum
from pathlib import Path
from typing import Iterable, Mapping

logger = logging.getLogger(__name__)

_ADDRESS_RE = re.compile(r"^0x[0-9a-f]{40}$")


class FlowDirection(str, Enum):
    """Direction of a transfer relative to the tracked protocols."""

    INFLOW = "inflow"  # mint, or user -> protocol
    OUTFLOW = "outflow"  # burn, or protocol -> user
    NEUTRAL = "neutral"  # user -> user, or protocol -> protocol


def normalize_address(address: str | None) -> str:
    return (address or "").strip().lower()


class ProtocolAddressTable:
    """
    Known protocol contracts, keyed by lower-case address.

    Absence from the table means "not a protocol": transfers between two
    such addresses are neutral. The table is loaded from configuration so
    new protocols only need a JSON edit.
    """

    def __init__(self, entries: Mapping[str, str] | None = None) -> None:
        self._by_address: dict[str, str] = dict(entries or {})

    @classmethod
    def from_mapping(cls, protocols: Mapping[str, Iterable[str]]) -> "ProtocolAddressTable":
        by_address: dict[str, str] = {}
        for protocol, addresses in protocols.items():
            for raw in addresses:
                address = normalize_address(raw)
                if not _ADDRESS_RE.match(address):
                    logger.warning(f"[Protocols] Skipping malformed {protocol} address: {raw!r}")
                    continue
                owner = by_address.get(address)
                if owner is not None and owner != protocol:
                    raise ValueError(
                        f"Address {address} listed for both {owner} and {protocol}"
                    )
                by_address[address] = protocol
        return cls(by_address)

    @classmethod
    def load(cls, path: Path | str) -> "ProtocolAddressTable":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected an object of protocol -> [addresses]")
        table = cls.from_mapping(data)
        logger.info(f"[Protocols] Loaded {len(table)} addresses for {len(table.protocols())} protocols")
        return table

    def is_protocol(self, address: str) -> bool:
        return normalize_address(address) in self._by_address

    def protocol_for(self, address: str) -> str | None:
        return self._by_address.get(normalize_address(address))

    def protocols(self) -> set[str]:
        return set(self._by_address.values())

    def __len__(self) -> int:
        return len(self._by_address)

    def __contains__(self, address: object) -> bool:
        return isinstance(address, str) and self.is_protocol(address)
