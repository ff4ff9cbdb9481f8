"""
╔══════════════════════════════════════════════════════════════════╗
║       RoyaltyMarketplace — Multi-token ledger with royalties     ║
║       Smart Contract: royalty_marketplace.py                     ║
║                                                                  ║
║  Features:                                                       ║
║  • Fungible-per-id asset minting with a fixed creator royalty   ║
║  • Royalty siphoned to the creator on every transfer            ║
║  • Operator approvals (holder lets another account transfer)    ║
║  • Owner-minted utility token balances                          ║
║  • Shared metadata base URI                                     ║
╚══════════════════════════════════════════════════════════════════╝
"""

from beaker import *
from beaker.lib.storage import BoxMapping
from pyteal import *

from contracts.events import (
    APPROVAL_FOR_ALL,
    MINT_ASSET,
    MINT_UTILITY_TOKEN,
    TRANSFER_WITH_ROYALTY,
)
from contracts.keys import ASSET_PREFIX, BALANCE_PREFIX, UTILITY_PREFIX
from contracts.royalty import royalty_due


# ─────────────────────────────────────────────
#  ASSET RECORD  (stored in Box a + itob(id))
# ─────────────────────────────────────────────
class AssetInfo(abi.NamedTuple):
    creator:            abi.Field[abi.Address]
    royalty_percentage: abi.Field[abi.Uint64]


# ─────────────────────────────────────────────
#  LEDGER BOXES  (raw keys, uint64 values)
# ─────────────────────────────────────────────
# Balance box:  b + holder (32 bytes) + itob(asset_id)
# Utility box:  u + holder (32 bytes)
# Operator box: holder (32 bytes) + operator (32 bytes), present = approved


# ─────────────────────────────────────────────
#  APPLICATION STATE
# ─────────────────────────────────────────────
class RoyaltyMarketplaceState:
    base_uri = GlobalStateValue(
        stack_type=TealType.bytes,
        descr="Metadata base URI returned for every asset id",
    )
    owner = GlobalStateValue(
        stack_type=TealType.bytes,
        descr="Admin wallet allowed to mint utility tokens",
    )
    next_asset_id = GlobalStateValue(
        stack_type=TealType.uint64,
        default=Int(0),
        descr="Id the next minted asset receives",
    )

    assets = BoxMapping(abi.Uint64, AssetInfo, prefix=Bytes(ASSET_PREFIX))


app = Application(
    "RoyaltyMarketplace",
    descr="Multi-token asset ledger paying a fixed creator royalty on every transfer",
    state=RoyaltyMarketplaceState(),
)


# ─────────────────────────────────────────────
#  DEPLOY
# ─────────────────────────────────────────────
@app.create
def create(base_uri: abi.String) -> Expr:
    """Deploy with the metadata base URI; the deployer becomes owner."""
    return Seq(
        app.initialize_global_state(),
        app.state.base_uri.set(base_uri.get()),
        app.state.owner.set(Txn.sender()),
    )


# ─────────────────────────────────────────────
#  INTERNAL HELPERS
# ─────────────────────────────────────────────
def only_owner() -> Expr:
    return Assert(Txn.sender() == app.state.owner.get(), comment="Owner only")


def balance_key(holder: Expr, asset_id: Expr) -> Expr:
    return Concat(Bytes(BALANCE_PREFIX), holder, Itob(asset_id))


def utility_key(holder: Expr) -> Expr:
    return Concat(Bytes(UTILITY_PREFIX), holder)


def operator_key(holder: Expr, operator: Expr) -> Expr:
    return Concat(holder, operator)


@Subroutine(TealType.uint64)
def read_uint(key: Expr) -> Expr:
    """Box contents as uint64; a missing box reads as 0."""
    contents = BoxGet(key)
    return Seq(
        contents,
        If(contents.hasValue(), Btoi(contents.value()), Int(0)),
    )


@Subroutine(TealType.none)
def credit(holder: Expr, asset_id: Expr, amount: Expr) -> Expr:
    key = balance_key(holder, asset_id)
    return If(amount > Int(0)).Then(
        BoxPut(key, Itob(read_uint(key) + amount))
    )


@Subroutine(TealType.none)
def debit(holder: Expr, asset_id: Expr, amount: Expr) -> Expr:
    key  = balance_key(holder, asset_id)
    held = ScratchVar(TealType.uint64)
    return Seq(
        held.store(read_uint(key)),
        Assert(held.load() >= amount, comment="Insufficient balance"),
        If(held.load() > Int(0)).Then(
            BoxPut(key, Itob(held.load() - amount))
        ),
    )


@Subroutine(TealType.uint64)
def is_operator(holder: Expr, operator: Expr) -> Expr:
    approval = BoxLen(operator_key(holder, operator))
    return Seq(approval, approval.hasValue())


# ─────────────────────────────────────────────
#  ASSET MINTING
# ─────────────────────────────────────────────
@app.external
def mint_asset(
    amount: abi.Uint64,
    royalty_percentage: abi.Uint64,
    *,
    output: abi.Uint64,
) -> Expr:
    """
    Mint a new asset id to the caller.

    Args:
        amount:             Units credited to the creator
        royalty_percentage: Whole percent of every later transfer paid to the creator.
                            Not bounded; above 100 every transfer underflows and fails

    Returns:
        The new asset id
    """
    asset_id = abi.Uint64()
    creator  = abi.Address()
    info     = AssetInfo()

    return Seq(
        asset_id.set(app.state.next_asset_id.get()),
        creator.set(Txn.sender()),
        info.set(creator, royalty_percentage),
        app.state.assets[asset_id].set(info),

        credit(Txn.sender(), asset_id.get(), amount.get()),
        app.state.next_asset_id.set(asset_id.get() + Int(1)),

        MINT_ASSET.log(
            Txn.sender(),
            Itob(asset_id.get()),
            Itob(amount.get()),
            Itob(royalty_percentage.get()),
        ),
        output.set(asset_id),
    )


# ─────────────────────────────────────────────
#  TRANSFERS
# ─────────────────────────────────────────────
@app.external
def safe_transfer_with_royalty(
    from_: abi.Address,
    to: abi.Address,
    asset_id: abi.Uint64,
    amount: abi.Uint64,
    data: abi.DynamicBytes,
) -> Expr:
    """
    Transfer `amount` units of `asset_id`, paying the creator royalty out of them.

    The sender loses exactly `amount`; the creator gains
    floor(amount * royalty_percentage / 100) and `to` gains the rest.
    Caller must be `from_` or an operator approved by `from_`.
    `data` is accepted for call-shape compatibility and not interpreted.
    """
    info       = AssetInfo()
    creator    = abi.Address()
    percentage = abi.Uint64()
    royalty    = ScratchVar(TealType.uint64)

    return Seq(
        Assert(app.state.assets[asset_id].exists(), comment="Asset does not exist"),
        If(Txn.sender() != from_.get()).Then(
            Assert(is_operator(from_.get(), Txn.sender()), comment="Caller is not holder or approved operator")
        ),

        app.state.assets[asset_id].store_into(info),
        info.creator.store_into(creator),
        info.royalty_percentage.store_into(percentage),
        royalty.store(royalty_due(amount.get(), percentage.get())),

        # Debit before crediting: the creator may also be the sender
        debit(from_.get(), asset_id.get(), amount.get()),
        credit(creator.get(), asset_id.get(), royalty.load()),
        credit(to.get(), asset_id.get(), amount.get() - royalty.load()),

        TRANSFER_WITH_ROYALTY.log(
            from_.get(),
            to.get(),
            Itob(asset_id.get()),
            Itob(amount.get()),
            Itob(royalty.load()),
        ),
    )


@app.external
def set_approval_for_all(
    operator: abi.Address,
    approved: abi.Bool,
) -> Expr:
    """Allow or revoke `operator` moving any of the caller's assets."""
    key = operator_key(Txn.sender(), operator.get())
    return Seq(
        Assert(operator.get() != Txn.sender(), comment="Cannot approve self"),
        If(approved.get()).Then(
            BoxPut(key, Itob(Int(1)))
        ).Else(
            Pop(BoxDelete(key))
        ),
        APPROVAL_FOR_ALL.log(Txn.sender(), operator.get(), approved.encode()),
    )


# ─────────────────────────────────────────────
#  UTILITY TOKEN
# ─────────────────────────────────────────────
@app.external
def mint_utility_token(
    to: abi.Address,
    amount: abi.Uint64,
) -> Expr:
    """Credit `amount` utility tokens to `to`. Owner only."""
    key = utility_key(to.get())
    return Seq(
        only_owner(),
        BoxPut(key, Itob(read_uint(key) + amount.get())),
        MINT_UTILITY_TOKEN.log(to.get(), Itob(amount.get())),
    )


# ─────────────────────────────────────────────
#  READ-ONLY VIEWS (ABI methods)
# ─────────────────────────────────────────────
@app.external(read_only=True)
def uri(
    asset_id: abi.Uint64,
    *,
    output: abi.String,
) -> Expr:
    """Metadata URI; the same base URI for every id."""
    return output.set(app.state.base_uri.get())


@app.external(read_only=True)
def asset_info(
    asset_id: abi.Uint64,
    *,
    output: AssetInfo,
) -> Expr:
    """Creator and royalty percentage of an asset; rejects unknown ids."""
    return Seq(
        Assert(app.state.assets[asset_id].exists(), comment="Asset does not exist"),
        app.state.assets[asset_id].store_into(output),
    )


@app.external(read_only=True)
def balance_of(
    account: abi.Address,
    asset_id: abi.Uint64,
    *,
    output: abi.Uint64,
) -> Expr:
    return output.set(read_uint(balance_key(account.get(), asset_id.get())))


@app.external(read_only=True)
def utility_balance_of(
    account: abi.Address,
    *,
    output: abi.Uint64,
) -> Expr:
    return output.set(read_uint(utility_key(account.get())))


@app.external(read_only=True)
def is_approved_for_all(
    account: abi.Address,
    operator: abi.Address,
    *,
    output: abi.Bool,
) -> Expr:
    return output.set(is_operator(account.get(), operator.get()))


@app.external(read_only=True, name="owner")
def read_owner(*, output: abi.Address) -> Expr:
    return output.set(app.state.owner.get())


# ─────────────────────────────────────────────
#  ADMIN
# ─────────────────────────────────────────────
@app.external
def set_uri(new_uri: abi.String) -> Expr:
    """Replace the metadata base URI. Owner only."""
    return Seq(
        only_owner(),
        app.state.base_uri.set(new_uri.get()),
    )


@app.external
def transfer_ownership(new_owner: abi.Address) -> Expr:
    """Hand the owner role to another wallet. Owner only."""
    return Seq(
        only_owner(),
        app.state.owner.set(new_owner.get()),
    )


if __name__ == "__main__":
    import os
    os.makedirs("artifacts/royalty_marketplace", exist_ok=True)
    app_spec = app.build()
    app_spec.export("artifacts/royalty_marketplace")
    print("✅ RoyaltyMarketplace compiled to ./artifacts/royalty_marketplace/")
    print(f"   Approval size: {len(app_spec.approval_program)} chars of TEAL")
    print(f"   Clear size:    {len(app_spec.clear_program)} chars of TEAL")
