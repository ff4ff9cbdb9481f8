"""
End-to-end behaviour against a running AlgoKit LocalNet.

Start one with `algokit localnet start`; every test here is skipped otherwise.
"""

import pytest
from algosdk.atomic_transaction_composer import AccountTransactionSigner
from beaker.client import LogicException

import deploy_and_interact as cli
from contracts.events import decode_events
from contracts.keys import asset_key, balance_key, card_count_key, fighter_key, fighter_owner_key


pytestmark = pytest.mark.localnet

BASE_URI = "https://api.royalty.com/metadata/"


def as_account(app_client, acct):
    return app_client.prepare(signer=AccountTransactionSigner(acct.private_key))


# ─────────────────────────────────────────────
#  FighterCard
# ─────────────────────────────────────────────
@pytest.fixture
def fighters(localnet, capsys):
    client, accounts = localnet
    owner = accounts[0]
    app_client = cli.fighter_client(client, owner.private_key)
    cli.deploy_fighter_card(app_client)
    capsys.readouterr()
    return app_client, accounts


def test_mint_fighter_in_first_season(fighters):
    app_client, _ = fighters
    fighter_id = cli.mint_fighter_card(app_client, "Jon Jones")

    assert fighter_id == 0
    fighter = cli.get_fighter_details(app_client, 0)
    assert fighter["fighter_name"] == "Jon Jones"
    assert fighter["season"] == 1


def test_start_new_season_increments_by_one(fighters):
    app_client, _ = fighters
    assert cli.current_season(app_client) == 1
    assert cli.start_new_season(app_client) == 2
    assert cli.current_season(app_client) == 2


def test_mint_after_season_change(fighters):
    app_client, accounts = fighters
    owner = accounts[0]

    cli.mint_fighter_card(app_client, "Conor McGregor")
    assert cli.get_fighter_details(app_client, 0)["season"] == 1

    cli.start_new_season(app_client)
    cli.mint_fighter_card(app_client, "khabib nurmagomedov")

    fighter = cli.get_fighter_details(app_client, 1)
    assert fighter["fighter_name"] == "khabib nurmagomedov"
    assert fighter["season"] == 2
    # Earlier cards keep the season they were minted in
    assert cli.get_fighter_details(app_client, 0)["season"] == 1
    assert cli.fighter_balance_of(app_client, owner.address) == 2


def test_several_mints_share_the_season(fighters):
    app_client, _ = fighters
    for name in ("Jon Jones", "Conor McGregor", "Israel Adesanya"):
        cli.mint_fighter_card(app_client, name)
    seasons = {cli.get_fighter_details(app_client, i)["season"] for i in range(3)}
    assert seasons == {1}
    assert cli.total_supply(app_client) == 3


def test_mint_logs_event(fighters):
    app_client, accounts = fighters
    result = app_client.call(
        "mint_fighter_card",
        fighter_name="Jon Jones",
        boxes=[
            (app_client.app_id, fighter_key(0)),
            (app_client.app_id, fighter_owner_key(0)),
            (app_client.app_id, card_count_key(accounts[0].address)),
        ],
    )
    events = decode_events(result.tx_info["logs"])
    assert events[0].name == "FighterMinted"
    assert events[0].args == {"owner": accounts[0].address, "fighter_id": 0, "season": 1}


def test_unknown_fighter_is_rejected(fighters):
    app_client, _ = fighters
    with pytest.raises(LogicException):
        cli.get_fighter_details(app_client, 5)


def test_only_creator_starts_season(fighters):
    app_client, accounts = fighters
    with pytest.raises(LogicException):
        cli.start_new_season(as_account(app_client, accounts[1]))
    assert cli.current_season(app_client) == 1


def test_transfer_fighter(fighters):
    app_client, accounts = fighters
    owner, other = accounts[0], accounts[1]
    cli.mint_fighter_card(app_client, "Jon Jones")

    cli.transfer_fighter(app_client, other.address, 0)

    assert cli.owner_of(app_client, 0) == other.address
    assert cli.fighter_balance_of(app_client, owner.address) == 0
    assert cli.fighter_balance_of(app_client, other.address) == 1
    assert cli.get_fighter_details(app_client, 0)["season"] == 1

    # The previous owner can no longer move it
    with pytest.raises(LogicException):
        cli.transfer_fighter(app_client, owner.address, 0)


# ─────────────────────────────────────────────
#  RoyaltyMarketplace
# ─────────────────────────────────────────────
@pytest.fixture
def market(localnet, capsys):
    client, accounts = localnet
    owner = accounts[0]
    app_client = cli.marketplace_client(client, owner.private_key)
    cli.deploy_marketplace(app_client, BASE_URI)
    capsys.readouterr()
    return app_client, accounts


def test_uri_is_base_uri(market):
    app_client, _ = market
    assert cli.uri(app_client, 1) == BASE_URI
    assert cli.uri(app_client, 1) != "https://api.royalty.com/incorrect-metadata/"


def test_mint_asset_records_creator_and_royalty(market):
    app_client, accounts = market
    creator = accounts[2]

    asset_id = cli.mint_asset(as_account(app_client, creator), 100, 10)

    assert asset_id == 0
    assert cli.get_asset_info(app_client, 0) == {"creator": creator.address, "royalty_percentage": 10}
    assert cli.balance_of(app_client, creator.address, 0) == 100


def test_mint_asset_emits_event(market):
    app_client, accounts = market
    creator = accounts[2]
    result = as_account(app_client, creator).call(
        "mint_asset",
        amount=50,
        royalty_percentage=15,
        boxes=[
            (app_client.app_id, asset_key(0)),
            (app_client.app_id, balance_key(creator.address, 0)),
        ],
    )
    events = decode_events(result.tx_info["logs"])
    assert [e.name for e in events] == ["MintAsset"]
    assert events[0].args == {
        "creator": creator.address,
        "asset_id": 0,
        "amount": 50,
        "royalty_percentage": 15,
    }


def send_with_royalty(app_client, from_addr, to_addr, asset_id, amount, creator):
    """Call the contract directly, without the client-side royalty preview."""
    return app_client.call(
        "safe_transfer_with_royalty",
        from_=from_addr,
        to=to_addr,
        asset_id=asset_id,
        amount=amount,
        data=b"",
        boxes=[
            (app_client.app_id, key)
            for key in dict.fromkeys([
                asset_key(asset_id),
                balance_key(from_addr, asset_id),
                balance_key(creator, asset_id),
                balance_key(to_addr, asset_id),
            ])
        ],
    )


def test_royalty_above_hundred_mints_but_cannot_transfer(market):
    app_client, accounts = market
    owner, other = accounts[0], accounts[1]

    assert cli.mint_asset(app_client, 100, 150) == 0
    assert cli.get_asset_info(app_client, 0)["royalty_percentage"] == 150
    assert cli.balance_of(app_client, owner.address, 0) == 100

    # 150 % of the amount exceeds it, so the recipient share underflows
    with pytest.raises(LogicException):
        send_with_royalty(app_client, owner.address, other.address, 0, 10, owner.address)
    assert cli.balance_of(app_client, owner.address, 0) == 100
    assert cli.balance_of(app_client, other.address, 0) == 0


def test_unknown_asset_is_rejected(market):
    app_client, accounts = market
    owner, other = accounts[0], accounts[1]
    cli.mint_asset(app_client, 100, 10)

    with pytest.raises(LogicException):
        cli.get_asset_info(app_client, 99)
    with pytest.raises(LogicException):
        send_with_royalty(app_client, owner.address, other.address, 99, 1, owner.address)

    assert cli.balance_of(app_client, owner.address, 99) == 0
    assert cli.balance_of(app_client, other.address, 99) == 0
    assert cli.balance_of(app_client, owner.address, 0) == 100
    assert cli.balance_of(app_client, other.address, 0) == 0


def test_transfer_pays_creator_royalty(market):
    app_client, accounts = market
    owner, other = accounts[0], accounts[1]
    cli.mint_asset(app_client, 100, 10)

    event = cli.transfer_with_royalty(app_client, owner.address, other.address, 0, 100)

    assert event["royalty_paid"] == 10
    assert cli.balance_of(app_client, other.address, 0) == 90
    # Creator sent all 100 and got 10 back as royalty
    assert cli.balance_of(app_client, owner.address, 0) == 10


def test_transfer_between_holders(market):
    app_client, accounts = market
    creator, holder, buyer = accounts[0], accounts[1], accounts[2]
    cli.mint_asset(app_client, 1000, 10)
    cli.transfer_with_royalty(app_client, creator.address, holder.address, 0, 500)
    before = {a.address: cli.balance_of(app_client, a.address, 0) for a in (creator, holder, buyer)}

    cli.transfer_with_royalty(as_account(app_client, holder), holder.address, buyer.address, 0, 15)

    after = {a.address: cli.balance_of(app_client, a.address, 0) for a in (creator, holder, buyer)}
    assert after[holder.address] - before[holder.address] == -15
    assert after[creator.address] - before[creator.address] == 1
    assert after[buyer.address] - before[buyer.address] == 14
    assert sum(after.values()) == sum(before.values()) == 1000


def test_transfer_over_balance_is_rejected(market):
    app_client, accounts = market
    owner, other = accounts[0], accounts[1]
    cli.mint_asset(app_client, 100, 10)

    with pytest.raises(LogicException):
        cli.transfer_with_royalty(app_client, owner.address, other.address, 0, 101)
    assert cli.balance_of(app_client, owner.address, 0) == 100
    assert cli.balance_of(app_client, other.address, 0) == 0


def test_operator_needs_approval(market):
    app_client, accounts = market
    holder, operator, buyer = accounts[0], accounts[1], accounts[2]
    cli.mint_asset(app_client, 100, 0)
    as_operator = as_account(app_client, operator)

    with pytest.raises(LogicException):
        cli.transfer_with_royalty(as_operator, holder.address, buyer.address, 0, 10)

    cli.set_approval_for_all(app_client, operator.address, True)
    assert cli.is_approved_for_all(app_client, holder.address, operator.address)
    cli.transfer_with_royalty(as_operator, holder.address, buyer.address, 0, 10)
    assert cli.balance_of(app_client, buyer.address, 0) == 10

    cli.set_approval_for_all(app_client, operator.address, False)
    assert not cli.is_approved_for_all(app_client, holder.address, operator.address)


def test_owner_mints_utility_tokens(market):
    app_client, accounts = market
    other = accounts[1]

    cli.mint_utility_token(app_client, other.address, 200)
    assert cli.utility_balance_of(app_client, other.address) == 200

    cli.mint_utility_token(app_client, other.address, 50)
    assert cli.utility_balance_of(app_client, other.address) == 250
    assert cli.utility_balance_of(app_client, accounts[0].address) == 0


def test_non_owner_cannot_mint_utility_tokens(market):
    app_client, accounts = market
    other = accounts[1]
    with pytest.raises(LogicException):
        cli.mint_utility_token(as_account(app_client, other), other.address, 200)
    assert cli.utility_balance_of(app_client, other.address) == 0


def test_ownership_transfer_moves_admin_rights(market):
    app_client, accounts = market
    owner, successor = accounts[0], accounts[1]

    cli.transfer_ownership(app_client, successor.address)
    assert cli.owner(app_client) == successor.address

    with pytest.raises(LogicException):
        cli.mint_utility_token(app_client, owner.address, 1)
    cli.mint_utility_token(as_account(app_client, successor), owner.address, 1)
    assert cli.utility_balance_of(app_client, owner.address) == 1


def test_owner_can_replace_uri(market):
    app_client, accounts = market
    cli.set_uri(app_client, "ipfs://new-base/")
    assert cli.uri(app_client, 0) == "ipfs://new-base/"
    with pytest.raises(LogicException):
        cli.set_uri(as_account(app_client, accounts[1]), "ipfs://evil/")
    assert cli.uri(app_client, 0) == "ipfs://new-base/"
