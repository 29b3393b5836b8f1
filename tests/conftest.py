import pytest

from spacecoin.deploy import deploy
from spacecoin.sale.phase import Phase
from spacecoin.utils import address_for, to_units

FUNDING = to_units(100_000)


@pytest.fixture
def accounts():
    names = ["admin", "treasury", "alice", "bob", "carol", "trader"]
    return {n: address_for(n) for n in names}


@pytest.fixture
def seed_investors():
    return [address_for(f"seed{i}") for i in range(20)]


@pytest.fixture
def general_investors():
    return [address_for(f"general{i}") for i in range(20)]


@pytest.fixture
def d(accounts, seed_investors, general_investors):
    dep = deploy(admin=accounts["admin"], treasury=accounts["treasury"], whitelist=seed_investors)
    for addr in [*accounts.values(), *seed_investors, *general_investors]:
        dep.chain.native.mint(addr, FUNDING)
    return dep


@pytest.fixture
def open_sale(d, accounts):
    d.sale.advance_phase(accounts["admin"], Phase.OPEN)
    return d


@pytest.fixture
def seeded_pool(open_sale, accounts):
    """Pool holding 100,000 SPC / 20,000 ETH from alice and bob."""
    d = open_sale
    for who in ("alice", "bob"):
        addr = accounts[who]
        d.sale.purchase(addr, to_units(10_000))
        d.token.increase_allowance(addr, d.router.address, to_units(50_000))
        d.router.add_liquidity(addr, to_units(50_000), to_units(10_000), addr)
    return d
