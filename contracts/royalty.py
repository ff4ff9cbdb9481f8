"""
Royalty split arithmetic.

`royalty_due` is the on-chain expression used by the marketplace contract;
`split_royalty` is the same rule in plain Python for client-side previews.
Both round the royalty down, so the recipient keeps any remainder.
"""

from pyteal import Expr, Int, WideRatio


PERCENT_BASE           = 100
MAX_ROYALTY_PERCENTAGE = 100


def royalty_due(amount: Expr, royalty_percentage: Expr) -> Expr:
    """floor(amount * royalty_percentage / 100) with a 128-bit intermediate product."""
    return WideRatio([amount, royalty_percentage], [Int(PERCENT_BASE)])


def split_royalty(amount: int, royalty_percentage: int) -> tuple[int, int]:
    """
    Split a transferred quantity into (royalty, received).

    Args:
        amount:             Units leaving the sender
        royalty_percentage: Creator royalty in whole percent, 0..100

    Returns:
        (units credited to the creator, units credited to the recipient)
    """
    if amount < 0:
        raise ValueError(f"amount must be non-negative, got {amount}")
    if not 0 <= royalty_percentage <= MAX_ROYALTY_PERCENTAGE:
        raise ValueError(
            f"royalty percentage must be within 0..{MAX_ROYALTY_PERCENTAGE}, got {royalty_percentage}"
        )
    royalty = amount * royalty_percentage // PERCENT_BASE
    return royalty, amount - royalty
