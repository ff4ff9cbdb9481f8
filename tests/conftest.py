import pytest
from algosdk import encoding
from algosdk.error import AlgodHTTPError, KMDHTTPError

from contracts import fighter_card, royalty_marketplace


# Fixed, valid addresses for tests that never hit the network
ALICE = encoding.encode_address(bytes(range(32)))
BOB   = encoding.encode_address(bytes(range(32, 64)))


@pytest.fixture(scope="session")
def fighter_spec():
    return fighter_card.app.build()


@pytest.fixture(scope="session")
def marketplace_spec():
    return royalty_marketplace.app.build()


@pytest.fixture(scope="session")
def localnet():
    """(algod client, funded accounts) for a running AlgoKit LocalNet, else skip."""
    from beaker import localnet as beaker_localnet

    try:
        client = beaker_localnet.get_algod_client()
        client.status()
        accounts = beaker_localnet.get_accounts()
    except (AlgodHTTPError, KMDHTTPError, OSError) as exc:
        pytest.skip(f"AlgoKit LocalNet not reachable: {exc}")
    if len(accounts) < 3:
        pytest.skip("LocalNet needs at least 3 funded accounts")
    return client, accounts
