"""
ARC-28 style event logs.

Each event is a single `log` line: the first 4 bytes of
sha512_256("Name(type,...)") followed by the ABI-encoded argument tuple.
The contracts emit them with `EventSpec.log(...)`; the client turns the
base64 `logs` of a confirmed transaction back into `Event` records.
"""

import base64
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from algosdk import abi
from algosdk.encoding import checksum
from pyteal import Bytes, Concat, Expr, Log


logger = logging.getLogger(__name__)

# Prefix algod puts in front of an ABI method return value log
ABI_RETURN_PREFIX = bytes.fromhex("151f7c75")


@dataclass(frozen=True)
class Event:
    name: str
    args: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class EventSpec:
    name:   str
    fields: tuple[tuple[str, str], ...]   # (arg name, ABI type)

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(t for _, t in self.fields)})"

    @property
    def selector(self) -> bytes:
        return checksum(self.signature.encode())[:4]

    @property
    def arg_type(self) -> abi.TupleType:
        return abi.ABIType.from_string(f"({','.join(t for _, t in self.fields)})")

    def log(self, *encoded_args: Expr) -> Expr:
        """Emit the event. Arguments must already be ABI-encoded byte expressions."""
        if len(encoded_args) != len(self.fields):
            raise ValueError(
                f"{self.signature} takes {len(self.fields)} arguments, got {len(encoded_args)}"
            )
        return Log(Concat(Bytes("base16", self.selector.hex()), *encoded_args))

    def encode(self, *values: Any) -> bytes:
        """Off-chain encoding of the same log line (used by tests and tooling)."""
        return self.selector + self.arg_type.encode(list(values))

    def decode(self, raw: bytes) -> Event:
        values = self.arg_type.decode(raw[4:])
        return Event(self.name, {name: value for (name, _), value in zip(self.fields, values)})


# ─────────────────────────────────────────────
#  FighterCard
# ─────────────────────────────────────────────
FIGHTER_MINTED = EventSpec(
    "FighterMinted",
    (("owner", "address"), ("fighter_id", "uint64"), ("season", "uint64")),
)
SEASON_STARTED = EventSpec(
    "SeasonStarted",
    (("season", "uint64"),),
)
FIGHTER_TRANSFERRED = EventSpec(
    "FighterTransferred",
    (("from", "address"), ("to", "address"), ("fighter_id", "uint64")),
)

# ─────────────────────────────────────────────
#  RoyaltyMarketplace
# ─────────────────────────────────────────────
MINT_ASSET = EventSpec(
    "MintAsset",
    (
        ("creator", "address"),
        ("asset_id", "uint64"),
        ("amount", "uint64"),
        ("royalty_percentage", "uint64"),
    ),
)
TRANSFER_WITH_ROYALTY = EventSpec(
    "TransferWithRoyalty",
    (
        ("from", "address"),
        ("to", "address"),
        ("asset_id", "uint64"),
        ("amount", "uint64"),
        ("royalty_paid", "uint64"),
    ),
)
MINT_UTILITY_TOKEN = EventSpec(
    "MintUtilityToken",
    (("to", "address"), ("amount", "uint64")),
)
APPROVAL_FOR_ALL = EventSpec(
    "ApprovalForAll",
    (("holder", "address"), ("operator", "address"), ("approved", "bool")),
)

EVENTS: dict[bytes, EventSpec] = {
    spec.selector: spec
    for spec in (
        FIGHTER_MINTED,
        SEASON_STARTED,
        FIGHTER_TRANSFERRED,
        MINT_ASSET,
        TRANSFER_WITH_ROYALTY,
        MINT_UTILITY_TOKEN,
        APPROVAL_FOR_ALL,
    )
}


def decode_event(raw: bytes) -> Event | None:
    """Decode one raw log line; returns None for ABI return values and unknown logs."""
    if raw.startswith(ABI_RETURN_PREFIX):
        return None
    spec = EVENTS.get(raw[:4])
    if spec is None:
        logger.debug("Skipping unrecognised log line %s", raw[:4].hex())
        return None
    return spec.decode(raw)


def decode_events(logs: Iterable[str | bytes]) -> list[Event]:
    """
    Decode the `logs` of a confirmed application call.

    Args:
        logs: base64 strings as returned by algod, or raw bytes

    Returns:
        The recognised events, in emission order
    """
    events = []
    for entry in logs:
        raw = base64.b64decode(entry) if isinstance(entry, str) else entry
        event = decode_event(raw)
        if event is not None:
            events.append(event)
    return events
