"""
╔══════════════════════════════════════════════════════════════════╗
║          FighterCard — Seasonal fighter NFTs on Algorand         ║
║          Smart Contract: fighter_card.py                         ║
║                                                                  ║
║  Features:                                                       ║
║  • Sequential fighter card minting (ids start at 0)             ║
║  • Season tag stamped onto every card at mint time              ║
║  • Admin-triggered season rollover                              ║
║  • Card ownership registry with owner-only transfers            ║
╚══════════════════════════════════════════════════════════════════╝
"""

from beaker import *
from beaker.lib.storage import BoxMapping
from pyteal import *

from contracts.events import FIGHTER_MINTED, FIGHTER_TRANSFERRED, SEASON_STARTED
from contracts.keys import CARD_COUNT_PREFIX, FIGHTER_OWNER_PREFIX, FIGHTER_PREFIX


FIRST_SEASON = Int(1)


# ─────────────────────────────────────────────
#  FIGHTER RECORD  (stored in Box f + itob(id))
# ─────────────────────────────────────────────
class Fighter(abi.NamedTuple):
    fighter_id:   abi.Field[abi.Uint64]
    fighter_name: abi.Field[abi.String]
    season:       abi.Field[abi.Uint64]


# ─────────────────────────────────────────────
#  APPLICATION STATE
# ─────────────────────────────────────────────
class FighterCardState:
    current_season = GlobalStateValue(
        stack_type=TealType.uint64,
        default=FIRST_SEASON,
        descr="Season stamped onto newly minted cards",
    )
    next_fighter_id = GlobalStateValue(
        stack_type=TealType.uint64,
        default=Int(0),
        descr="Id the next minted card receives; equals total supply",
    )

    fighters    = BoxMapping(abi.Uint64, Fighter, prefix=Bytes(FIGHTER_PREFIX))
    owners      = BoxMapping(abi.Uint64, abi.Address, prefix=Bytes(FIGHTER_OWNER_PREFIX))
    card_counts = BoxMapping(abi.Address, abi.Uint64, prefix=Bytes(CARD_COUNT_PREFIX))


app = Application(
    "FighterCard",
    descr="Sequential fighter card NFTs stamped with the season they were minted in",
    state=FighterCardState(),
)


@app.create
def create() -> Expr:
    """Deploy with season 1 and no cards."""
    return app.initialize_global_state()


# ─────────────────────────────────────────────
#  INTERNAL HELPERS
# ─────────────────────────────────────────────
@Subroutine(TealType.uint64)
def card_count(account: Expr) -> Expr:
    """Number of cards held by `account` (0 when it never held one)."""
    count = app.state.card_counts[account]
    return If(count.exists(), Btoi(count.get()), Int(0))


@Subroutine(TealType.none)
def add_cards(account: Expr, delta: Expr) -> Expr:
    return app.state.card_counts[account].set(Itob(card_count(account) + delta))


@Subroutine(TealType.none)
def remove_card(account: Expr) -> Expr:
    held = ScratchVar(TealType.uint64)
    return Seq(
        held.store(card_count(account)),
        Assert(held.load() > Int(0), comment="Account holds no cards"),
        app.state.card_counts[account].set(Itob(held.load() - Int(1))),
    )


# ─────────────────────────────────────────────
#  MINTING & SEASONS
# ─────────────────────────────────────────────
@app.external
def mint_fighter_card(
    fighter_name: abi.String,
    *,
    output: abi.Uint64,
) -> Expr:
    """
    Mint the next fighter card to the caller.

    The card is stamped with the season that is current right now; later
    season changes never touch it.

    Returns:
        The new card id
    """
    fighter_id = abi.Uint64()
    season     = abi.Uint64()
    owner      = abi.Address()
    fighter    = Fighter()

    return Seq(
        fighter_id.set(app.state.next_fighter_id.get()),
        season.set(app.state.current_season.get()),
        fighter.set(fighter_id, fighter_name, season),
        app.state.fighters[fighter_id].set(fighter),

        owner.set(Txn.sender()),
        app.state.owners[fighter_id].set(owner),
        add_cards(Txn.sender(), Int(1)),

        app.state.next_fighter_id.set(fighter_id.get() + Int(1)),
        FIGHTER_MINTED.log(Txn.sender(), Itob(fighter_id.get()), Itob(season.get())),
        output.set(fighter_id),
    )


@app.external
def start_new_season(*, output: abi.Uint64) -> Expr:
    """Advance the season counter by one. Only callable by contract creator."""
    return Seq(
        Assert(Txn.sender() == Global.creator_address(), comment="Admin only"),
        app.state.current_season.set(app.state.current_season.get() + Int(1)),
        SEASON_STARTED.log(Itob(app.state.current_season.get())),
        output.set(app.state.current_season.get()),
    )


@app.external
def transfer_fighter(
    to: abi.Address,
    fighter_id: abi.Uint64,
) -> Expr:
    """Move a card to `to`. Name and season travel with it unchanged."""
    owner = abi.Address()

    return Seq(
        Assert(app.state.owners[fighter_id].exists(), comment="Fighter does not exist"),
        app.state.owners[fighter_id].store_into(owner),
        Assert(owner.get() == Txn.sender(), comment="Only the card owner can transfer it"),

        remove_card(Txn.sender()),
        add_cards(to.get(), Int(1)),
        app.state.owners[fighter_id].set(to),
        FIGHTER_TRANSFERRED.log(Txn.sender(), to.get(), Itob(fighter_id.get())),
    )


# ─────────────────────────────────────────────
#  READ-ONLY VIEWS (ABI methods)
# ─────────────────────────────────────────────
@app.external(read_only=True)
def get_fighter_details(
    fighter_id: abi.Uint64,
    *,
    output: Fighter,
) -> Expr:
    """Return the stored card; rejects unknown ids."""
    return Seq(
        Assert(app.state.fighters[fighter_id].exists(), comment="Fighter does not exist"),
        app.state.fighters[fighter_id].store_into(output),
    )


@app.external(read_only=True, name="current_season")
def read_current_season(*, output: abi.Uint64) -> Expr:
    return output.set(app.state.current_season.get())


@app.external(read_only=True)
def owner_of(
    fighter_id: abi.Uint64,
    *,
    output: abi.Address,
) -> Expr:
    return Seq(
        Assert(app.state.owners[fighter_id].exists(), comment="Fighter does not exist"),
        app.state.owners[fighter_id].store_into(output),
    )


@app.external(read_only=True)
def balance_of(
    account: abi.Address,
    *,
    output: abi.Uint64,
) -> Expr:
    return output.set(card_count(account.get()))


@app.external(read_only=True)
def total_supply(*, output: abi.Uint64) -> Expr:
    return output.set(app.state.next_fighter_id.get())


if __name__ == "__main__":
    import os
    os.makedirs("artifacts/fighter_card", exist_ok=True)
    app_spec = app.build()
    app_spec.export("artifacts/fighter_card")
    print("✅ FighterCard compiled to ./artifacts/fighter_card/")
    print(f"   Approval size: {len(app_spec.approval_program)} chars of TEAL")
    print(f"   Clear size:    {len(app_spec.clear_program)} chars of TEAL")
