"""
Box key layout shared by the contracts and the off-chain client.

The contracts build these keys with PyTeal; the client needs the exact same
bytes to pass box references with every application call.
"""

from algosdk import encoding


# ─────────────────────────────────────────────
#  FighterCard boxes
# ─────────────────────────────────────────────
FIGHTER_PREFIX       = "f"   # f + uint64(id)              -> Fighter tuple
FIGHTER_OWNER_PREFIX = "o"   # o + uint64(id)              -> owner address
CARD_COUNT_PREFIX    = "c"   # c + address                 -> uint64 cards held

# ─────────────────────────────────────────────
#  RoyaltyMarketplace boxes
# ─────────────────────────────────────────────
ASSET_PREFIX         = "a"   # a + uint64(id)              -> AssetInfo tuple
BALANCE_PREFIX       = "b"   # b + address + uint64(id)    -> uint64 units held
UTILITY_PREFIX       = "u"   # u + address                 -> uint64 utility tokens
# Operator approvals use holder + operator (64 bytes, the box name limit) with no prefix


def _uint64(value: int) -> bytes:
    return value.to_bytes(8, "big")


def _address(address: str) -> bytes:
    return encoding.decode_address(address)


def fighter_key(fighter_id: int) -> bytes:
    return FIGHTER_PREFIX.encode() + _uint64(fighter_id)


def fighter_owner_key(fighter_id: int) -> bytes:
    return FIGHTER_OWNER_PREFIX.encode() + _uint64(fighter_id)


def card_count_key(address: str) -> bytes:
    return CARD_COUNT_PREFIX.encode() + _address(address)


def asset_key(asset_id: int) -> bytes:
    return ASSET_PREFIX.encode() + _uint64(asset_id)


def balance_key(address: str, asset_id: int) -> bytes:
    return BALANCE_PREFIX.encode() + _address(address) + _uint64(asset_id)


def utility_key(address: str) -> bytes:
    return UTILITY_PREFIX.encode() + _address(address)


def operator_key(holder: str, operator: str) -> bytes:
    return _address(holder) + _address(operator)
