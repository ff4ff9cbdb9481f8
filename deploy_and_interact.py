"""
╔══════════════════════════════════════════════════════════════════╗
║       FighterCard & RoyaltyMarketplace — Deploy & Client        ║
║       deploy_and_interact.py                                    ║
║                                                                  ║
║  Usage:                                                          ║
║    python deploy_and_interact.py build                           ║
║    python deploy_and_interact.py deploy-fighter                  ║
║    python deploy_and_interact.py mint-fighter --name "Jon Jones" ║
║    python deploy_and_interact.py deploy-market                   ║
║    python deploy_and_interact.py mint-asset --amount 100         ║
║    python deploy_and_interact.py preview --amount 100            ║
╚══════════════════════════════════════════════════════════════════╝
"""

import argparse
import logging
import os
from typing import Optional

from algosdk import account, mnemonic
from algosdk.atomic_transaction_composer import AccountTransactionSigner
from algosdk.v2client import algod
from beaker.client import ApplicationClient
from dotenv import load_dotenv

from contracts import fighter_card, royalty_marketplace
from contracts.events import Event, decode_events
from contracts.keys import (
    asset_key,
    balance_key,
    card_count_key,
    fighter_key,
    fighter_owner_key,
    operator_key,
    utility_key,
)
from contracts.royalty import split_royalty


load_dotenv()

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────
#  CONFIGURATION
# ─────────────────────────────────────────────

# `local` = AlgoKit LocalNet, `test` = Algorand TestNet
NETWORKS = {
    "local": {
        "algod_address":   "http://localhost:4001",
        "algod_token":     "a" * 64,   # AlgoKit LocalNet default token
    },
    "test": {
        "algod_address":   "https://testnet-api.algonode.cloud",
        "algod_token":     "",          # AlgoNode doesn't need a token
    },
}

DEFAULT_NETWORK  = "local"
DEFAULT_BASE_URI = "https://api.royalty.com/metadata/"

# Box storage minimum balance is paid by the app account
DEFAULT_FUND_MICROALGOS = 1_000_000


class ConfigError(RuntimeError):
    """Missing or invalid deployment configuration."""


def network_config(name: Optional[str] = None) -> dict:
    """
    Resolve a network entry.

    The name comes from the argument, then ROYALTY_NETWORK, then the default.
    ALGOD_ADDRESS / ALGOD_TOKEN override the table entry when set.
    """
    name = name or os.environ.get("ROYALTY_NETWORK", DEFAULT_NETWORK)
    if name not in NETWORKS:
        raise ConfigError(f"Unknown network '{name}'. Choose one of: {', '.join(NETWORKS)}")
    cfg = dict(NETWORKS[name], name=name)
    cfg["algod_address"] = os.environ.get("ALGOD_ADDRESS", cfg["algod_address"])
    cfg["algod_token"]   = os.environ.get("ALGOD_TOKEN", cfg["algod_token"])
    return cfg


def app_id_from_env(env_var: str) -> int:
    """Read a deployed app id; 0 / unset means the contract was never deployed."""
    raw = os.environ.get(env_var, "0")
    try:
        app_id = int(raw)
    except ValueError:
        raise ConfigError(f"{env_var} must be an integer app id, got '{raw}'") from None
    if app_id <= 0:
        raise ConfigError(f"{env_var} is not set. Deploy first, then export {env_var}=<app id>")
    return app_id


# ─────────────────────────────────────────────
#  CLIENTS
# ─────────────────────────────────────────────
def get_algod(network: Optional[str] = None) -> algod.AlgodClient:
    cfg = network_config(network)
    return algod.AlgodClient(cfg["algod_token"], cfg["algod_address"])


def load_account(env_var: str = "DEPLOYER_MNEMONIC") -> tuple[str, str]:
    """
    Load an Algorand account from a mnemonic stored in env variable.
    Returns (private_key, address)
    """
    mn = os.environ.get(env_var)
    if not mn:
        # Generate a fresh account for demo purposes
        private_key, address = account.generate_account()
        print(f"\n⚠  No {env_var} set. Generated fresh account:")
        print(f"   Address  : {address}")
        print(f"   Mnemonic : {mnemonic.from_private_key(private_key)}")
        print(f"\n   Fund this address (LocalNet: `algokit localnet` dispenser, TestNet: bank.testnet.algorand.network)")
        print(f"   Then set: export {env_var}='<your mnemonic>'\n")
        return private_key, address
    private_key = mnemonic.to_private_key(mn)
    address     = account.address_from_private_key(private_key)
    return private_key, address


def fighter_client(
    client: algod.AlgodClient,
    private_key: str,
    app_id: int = 0,
) -> ApplicationClient:
    return ApplicationClient(
        client, fighter_card.app, app_id=app_id, signer=AccountTransactionSigner(private_key)
    )


def marketplace_client(
    client: algod.AlgodClient,
    private_key: str,
    app_id: int = 0,
) -> ApplicationClient:
    return ApplicationClient(
        client, royalty_marketplace.app, app_id=app_id, signer=AccountTransactionSigner(private_key)
    )


def _boxes(app_client: ApplicationClient, *keys: bytes) -> list[tuple[int, bytes]]:
    refs = [(app_client.app_id, key) for key in dict.fromkeys(keys)]
    logger.debug("Box references for app %s: %s", app_client.app_id, [k.hex() for _, k in refs])
    return refs


def _events(result, name: str) -> list[Event]:
    return [e for e in decode_events(result.tx_info.get("logs", [])) if e.name == name]


# ─────────────────────────────────────────────
#  BUILD & DEPLOY
# ─────────────────────────────────────────────
def build_artifacts(out_dir: str = "artifacts") -> dict[str, str]:
    """Compile both contracts to TEAL + ARC-32 app specs under `out_dir`."""
    written = {}
    for name, app in (
        ("fighter_card", fighter_card.app),
        ("royalty_marketplace", royalty_marketplace.app),
    ):
        target = os.path.join(out_dir, name)
        os.makedirs(target, exist_ok=True)
        print(f"🔨 Compiling {app.name}...")
        app.build().export(target)
        written[app.name] = target
        print(f"   → {target}/")
    return written


def deploy_fighter_card(
    app_client: ApplicationClient,
    fund_microalgos: int = DEFAULT_FUND_MICROALGOS,
) -> int:
    """Create the FighterCard app and fund it for box storage."""
    print("🔨 Deploying FighterCard...")
    app_id, app_addr, tx_id = app_client.create()
    print(f"   Transaction: {tx_id}")
    if fund_microalgos:
        app_client.fund(fund_microalgos)
        print(f"   Funded {app_addr} with {fund_microalgos / 1_000_000} ALGO")
    print(f"✅ Deployed! App ID: {app_id}")
    print(f"   Set: export FIGHTER_CARD_APP_ID={app_id}")
    return app_id


def deploy_marketplace(
    app_client: ApplicationClient,
    base_uri: str = DEFAULT_BASE_URI,
    fund_microalgos: int = DEFAULT_FUND_MICROALGOS,
) -> int:
    """Create the RoyaltyMarketplace app with its metadata base URI."""
    print("🔨 Deploying RoyaltyMarketplace...")
    print(f"   Base URI: {base_uri}")
    app_id, app_addr, tx_id = app_client.create(base_uri=base_uri)
    print(f"   Transaction: {tx_id}")
    if fund_microalgos:
        app_client.fund(fund_microalgos)
        print(f"   Funded {app_addr} with {fund_microalgos / 1_000_000} ALGO")
    print(f"✅ Deployed! App ID: {app_id}")
    print(f"   Set: export ROYALTY_MARKETPLACE_APP_ID={app_id}")
    return app_id


# ─────────────────────────────────────────────
#  FIGHTER CARDS
# ─────────────────────────────────────────────
def mint_fighter_card(app_client: ApplicationClient, fighter_name: str) -> int:
    """
    Mint a fighter card to the client's sender.

    Returns:
        New card id
    """
    next_id = app_client.get_global_state().get("next_fighter_id", 0)
    sender  = app_client.get_sender()

    print(f"🥊 Minting fighter card: '{fighter_name}'...")
    result = app_client.call(
        "mint_fighter_card",
        fighter_name=fighter_name,
        boxes=_boxes(app_client, fighter_key(next_id), fighter_owner_key(next_id), card_count_key(sender)),
    )
    fighter_id = result.return_value
    print(f"✅ Minted card #{fighter_id}")
    return fighter_id


def start_new_season(app_client: ApplicationClient) -> int:
    """Advance the season. Creator only."""
    season = app_client.call("start_new_season").return_value
    print(f"📅 Season {season} started")
    return season


def current_season(app_client: ApplicationClient) -> int:
    return app_client.call("current_season").return_value


def get_fighter_details(app_client: ApplicationClient, fighter_id: int) -> dict:
    """Fetch a card from box storage."""
    result = app_client.call(
        "get_fighter_details",
        fighter_id=fighter_id,
        boxes=_boxes(app_client, fighter_key(fighter_id)),
    ).return_value
    return {
        "fighter_id":   result[0],
        "fighter_name": result[1],
        "season":       result[2],
    }


def owner_of(app_client: ApplicationClient, fighter_id: int) -> str:
    return app_client.call(
        "owner_of",
        fighter_id=fighter_id,
        boxes=_boxes(app_client, fighter_owner_key(fighter_id)),
    ).return_value


def fighter_balance_of(app_client: ApplicationClient, address: str) -> int:
    return app_client.call(
        "balance_of",
        account=address,
        boxes=_boxes(app_client, card_count_key(address)),
    ).return_value


def total_supply(app_client: ApplicationClient) -> int:
    return app_client.call("total_supply").return_value


def transfer_fighter(app_client: ApplicationClient, to: str, fighter_id: int) -> None:
    sender = app_client.get_sender()
    app_client.call(
        "transfer_fighter",
        to=to,
        fighter_id=fighter_id,
        boxes=_boxes(
            app_client,
            fighter_owner_key(fighter_id),
            card_count_key(sender),
            card_count_key(to),
        ),
    )
    print(f"✅ Card #{fighter_id} transferred to {to}")


# ─────────────────────────────────────────────
#  ROYALTY MARKETPLACE
# ─────────────────────────────────────────────
def mint_asset(
    app_client: ApplicationClient,
    amount: int,
    royalty_percentage: int,
) -> int:
    """
    Mint a new asset id to the client's sender.

    Args:
        amount:             Units credited to the creator
        royalty_percentage: Whole percent paid to the creator on every transfer

    Returns:
        New asset id
    """
    next_id = app_client.get_global_state().get("next_asset_id", 0)
    sender  = app_client.get_sender()

    print(f"🎨 Minting asset: {amount} units @ {royalty_percentage}% royalty...")
    result = app_client.call(
        "mint_asset",
        amount=amount,
        royalty_percentage=royalty_percentage,
        boxes=_boxes(app_client, asset_key(next_id), balance_key(sender, next_id)),
    )
    asset_id = result.return_value
    print(f"✅ Minted asset #{asset_id}")
    return asset_id


def get_asset_info(app_client: ApplicationClient, asset_id: int) -> dict:
    result = app_client.call(
        "asset_info",
        asset_id=asset_id,
        boxes=_boxes(app_client, asset_key(asset_id)),
    ).return_value
    return {"creator": result[0], "royalty_percentage": result[1]}


def transfer_with_royalty(
    app_client: ApplicationClient,
    from_addr: str,
    to_addr: str,
    asset_id: int,
    amount: int,
    data: bytes = b"",
) -> dict:
    """
    Transfer units of an asset, routing the royalty to its creator.

    Returns:
        The decoded TransferWithRoyalty event arguments
    """
    info   = get_asset_info(app_client, asset_id)
    sender = app_client.get_sender()
    royalty, received = split_royalty(amount, info["royalty_percentage"])

    print(f"💸 Transferring {amount} of asset #{asset_id}")
    print(f"   Creator royalty : {royalty}  → {info['creator']}")
    print(f"   Recipient gets  : {received} → {to_addr}")

    result = app_client.call(
        "safe_transfer_with_royalty",
        from_=from_addr,
        to=to_addr,
        asset_id=asset_id,
        amount=amount,
        data=data,
        boxes=_boxes(
            app_client,
            asset_key(asset_id),
            balance_key(from_addr, asset_id),
            balance_key(info["creator"], asset_id),
            balance_key(to_addr, asset_id),
            operator_key(from_addr, sender),
        ),
    )
    events = _events(result, "TransferWithRoyalty")
    print(f"✅ Transfer complete! Tx: {result.tx_id}")
    return events[0].args if events else {}


def balance_of(app_client: ApplicationClient, address: str, asset_id: int) -> int:
    return app_client.call(
        "balance_of",
        account=address,
        asset_id=asset_id,
        boxes=_boxes(app_client, balance_key(address, asset_id)),
    ).return_value


def mint_utility_token(app_client: ApplicationClient, to: str, amount: int) -> None:
    """Credit utility tokens. Owner only."""
    print(f"🪙 Minting {amount} utility tokens to {to}...")
    app_client.call(
        "mint_utility_token",
        to=to,
        amount=amount,
        boxes=_boxes(app_client, utility_key(to)),
    )
    print("✅ Utility tokens minted")


def utility_balance_of(app_client: ApplicationClient, address: str) -> int:
    return app_client.call(
        "utility_balance_of",
        account=address,
        boxes=_boxes(app_client, utility_key(address)),
    ).return_value


def set_approval_for_all(app_client: ApplicationClient, operator: str, approved: bool) -> None:
    sender = app_client.get_sender()
    app_client.call(
        "set_approval_for_all",
        operator=operator,
        approved=approved,
        boxes=_boxes(app_client, operator_key(sender, operator)),
    )
    print(f"✅ Operator {operator} {'approved' if approved else 'revoked'}")


def is_approved_for_all(app_client: ApplicationClient, holder: str, operator: str) -> bool:
    return app_client.call(
        "is_approved_for_all",
        account=holder,
        operator=operator,
        boxes=_boxes(app_client, operator_key(holder, operator)),
    ).return_value


def uri(app_client: ApplicationClient, asset_id: int) -> str:
    return app_client.call("uri", asset_id=asset_id).return_value


def owner(app_client: ApplicationClient) -> str:
    return app_client.call("owner").return_value


def set_uri(app_client: ApplicationClient, new_uri: str) -> None:
    """Replace the metadata base URI. Owner only."""
    app_client.call("set_uri", new_uri=new_uri)
    print(f"✅ Base URI set to {new_uri}")


def transfer_ownership(app_client: ApplicationClient, new_owner: str) -> None:
    """Hand the marketplace owner role to another wallet. Owner only."""
    app_client.call("transfer_ownership", new_owner=new_owner)
    print(f"👑 Ownership transferred to {new_owner}")


def preview_royalty(amount: int, royalty_percentage: int) -> dict:
    """Offline royalty split, identical to what the contract computes."""
    royalty, received = split_royalty(amount, royalty_percentage)
    preview = {
        "amount":             amount,
        "royalty_percentage": royalty_percentage,
        "creator_royalty":    royalty,
        "recipient_receives": received,
    }

    print(f"\n{'─'*50}")
    print(f"  ROYALTY PREVIEW")
    print(f"{'─'*50}")
    for k, v in preview.items():
        print(f"  {k:<25} {v}")
    print(f"{'─'*50}\n")
    return preview


# ─────────────────────────────────────────────
#  CLI ENTRYPOINT
# ─────────────────────────────────────────────
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="FighterCard & RoyaltyMarketplace — Algorand contract CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Compile both contracts to ./artifacts
  python deploy_and_interact.py build

  # Deploy to LocalNet (default) or TestNet
  python deploy_and_interact.py deploy-fighter
  python deploy_and_interact.py --network test deploy-market --base-uri https://api.royalty.com/metadata/

  # Fighter cards
  python deploy_and_interact.py mint-fighter --name "Jon Jones"
  python deploy_and_interact.py new-season
  python deploy_and_interact.py fighter --id 0

  # Royalty assets
  python deploy_and_interact.py mint-asset --amount 100 --royalty 10
  python deploy_and_interact.py transfer --asset 0 --to RECIPIENT_ADDRESS --amount 100
  python deploy_and_interact.py balance --asset 0
  python deploy_and_interact.py mint-utility --to RECIPIENT_ADDRESS --amount 200

  # Offline royalty preview
  python deploy_and_interact.py preview --amount 100 --royalty 10
"""
    )
    parser.add_argument("--network", choices=sorted(NETWORKS), default=None,
                        help="Target network (default: $ROYALTY_NETWORK or local)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="cmd")

    # build
    p_build = sub.add_parser("build", help="Compile both contracts to TEAL + app specs")
    p_build.add_argument("--out", default="artifacts")

    # deploy
    p_df = sub.add_parser("deploy-fighter", help="Deploy FighterCard")
    p_df.add_argument("--fund", type=int, default=DEFAULT_FUND_MICROALGOS, help="microALGO for box storage")

    p_dm = sub.add_parser("deploy-market", help="Deploy RoyaltyMarketplace")
    p_dm.add_argument("--base-uri", default=os.environ.get("ROYALTY_BASE_URI", DEFAULT_BASE_URI))
    p_dm.add_argument("--fund", type=int, default=DEFAULT_FUND_MICROALGOS, help="microALGO for box storage")

    # fighter cards
    p_mf = sub.add_parser("mint-fighter", help="Mint a fighter card")
    p_mf.add_argument("--name", required=True)

    sub.add_parser("new-season", help="Start a new season (creator only)")

    p_f = sub.add_parser("fighter", help="Show a fighter card")
    p_f.add_argument("--id", type=int, required=True)

    p_tf = sub.add_parser("transfer-fighter", help="Give a fighter card to another wallet")
    p_tf.add_argument("--id", type=int, required=True)
    p_tf.add_argument("--to", required=True)

    # marketplace
    p_ma = sub.add_parser("mint-asset", help="Mint a royalty-bearing asset")
    p_ma.add_argument("--amount",  type=int, required=True)
    p_ma.add_argument("--royalty", type=int, default=10, help="Royalty in whole percent")

    p_tr = sub.add_parser("transfer", help="Transfer asset units with royalty")
    p_tr.add_argument("--asset",  type=int, required=True)
    p_tr.add_argument("--to",     required=True)
    p_tr.add_argument("--amount", type=int, required=True)
    p_tr.add_argument("--from",   dest="from_addr", default=None, help="Holder (defaults to your wallet)")
    p_tr.add_argument("--data",   default="", help="Hex payload passed through to the call")

    p_bal = sub.add_parser("balance", help="Asset balance of an address")
    p_bal.add_argument("--asset",   type=int, required=True)
    p_bal.add_argument("--address", default=None)

    p_as = sub.add_parser("asset", help="Show creator & royalty of an asset")
    p_as.add_argument("--asset", type=int, required=True)

    p_mu = sub.add_parser("mint-utility", help="Mint utility tokens (owner only)")
    p_mu.add_argument("--to",     required=True)
    p_mu.add_argument("--amount", type=int, required=True)

    p_ub = sub.add_parser("utility-balance", help="Utility token balance of an address")
    p_ub.add_argument("--address", default=None)

    p_ap = sub.add_parser("approve", help="Approve or revoke a transfer operator")
    p_ap.add_argument("--operator", required=True)
    p_ap.add_argument("--revoke",   action="store_true")

    p_uri = sub.add_parser("uri", help="Metadata URI of an asset")
    p_uri.add_argument("--asset", type=int, default=0)

    # offline
    p_pv = sub.add_parser("preview", help="Preview a royalty split (offline)")
    p_pv.add_argument("--amount",  type=int, required=True)
    p_pv.add_argument("--royalty", type=int, default=10)

    return parser


FIGHTER_COMMANDS = {"mint-fighter", "new-season", "fighter", "transfer-fighter"}
MARKET_COMMANDS  = {
    "mint-asset", "transfer", "balance", "asset",
    "mint-utility", "utility-balance", "approve", "uri",
}


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.cmd:
        parser.print_help()
        return

    # Commands that never touch the network
    if args.cmd == "build":
        build_artifacts(args.out)
        return
    if args.cmd == "preview":
        preview_royalty(args.amount, args.royalty)
        return

    cfg    = network_config(args.network)
    client = get_algod(cfg["name"])
    private_key, address = load_account()
    print(f"\n👛 Wallet:  {address}")
    print(f"   Network: {cfg['name']} ({cfg['algod_address']})\n")

    if args.cmd == "deploy-fighter":
        deploy_fighter_card(fighter_client(client, private_key), args.fund)

    elif args.cmd == "deploy-market":
        deploy_marketplace(marketplace_client(client, private_key), args.base_uri, args.fund)

    elif args.cmd in FIGHTER_COMMANDS:
        app_client = fighter_client(client, private_key, app_id_from_env("FIGHTER_CARD_APP_ID"))

        if args.cmd == "mint-fighter":
            mint_fighter_card(app_client, args.name)

        elif args.cmd == "new-season":
            start_new_season(app_client)

        elif args.cmd == "fighter":
            info = get_fighter_details(app_client, args.id)
            info["owner"] = owner_of(app_client, args.id)
            print(f"\n{'─'*50}")
            print(f"  FIGHTER CARD #{args.id}")
            print(f"{'─'*50}")
            for k, v in info.items():
                print(f"  {k:<20} {v}")
            print(f"{'─'*50}\n")

        elif args.cmd == "transfer-fighter":
            transfer_fighter(app_client, args.to, args.id)

    elif args.cmd in MARKET_COMMANDS:
        app_client = marketplace_client(client, private_key, app_id_from_env("ROYALTY_MARKETPLACE_APP_ID"))

        if args.cmd == "mint-asset":
            mint_asset(app_client, args.amount, args.royalty)

        elif args.cmd == "transfer":
            event = transfer_with_royalty(
                app_client,
                from_addr=args.from_addr or address,
                to_addr=args.to,
                asset_id=args.asset,
                amount=args.amount,
                data=bytes.fromhex(args.data),
            )
            if event:
                print(f"   Royalty paid: {event['royalty_paid']}")

        elif args.cmd == "balance":
            holder = args.address or address
            print(f"   Balance of {holder} for asset #{args.asset}: {balance_of(app_client, holder, args.asset)}")

        elif args.cmd == "asset":
            info = get_asset_info(app_client, args.asset)
            print(f"   Asset #{args.asset}: creator={info['creator']} royalty={info['royalty_percentage']}%")

        elif args.cmd == "mint-utility":
            mint_utility_token(app_client, args.to, args.amount)

        elif args.cmd == "utility-balance":
            holder = args.address or address
            print(f"   Utility balance of {holder}: {utility_balance_of(app_client, holder)}")

        elif args.cmd == "approve":
            set_approval_for_all(app_client, args.operator, not args.revoke)

        elif args.cmd == "uri":
            print(f"   URI: {uri(app_client, args.asset)}")


if __name__ == "__main__":
    main()
