import pytest

from spacecoin.config import PhaseCaps, SaleConfig
from spacecoin.deploy import deploy
from spacecoin.errors import (
    AggregateCapExceeded,
    CapError,
    IndividualCapExceeded,
    InsufficientBalance,
    InvalidAmount,
    InvalidPhase,
    NotContributor,
    NothingToClaim,
    NotOpenPhase,
    NotOwner,
    NotTreasury,
    NotWhitelisted,
    Paused,
)
from spacecoin.sale.engine import MAX_ACCUMULATOR
from spacecoin.sale.phase import Phase
from spacecoin.utils import to_units


def test_initial_state(d):
    assert d.sale.phase is Phase.SEED
    assert not d.sale.paused
    assert d.sale.total_contributions == 0
    assert d.sale.phase_total_cap == to_units(15_000)
    assert d.sale.phase_individual_cap == to_units(1_500)


def test_admin_actions_need_admin(d, accounts):
    with pytest.raises(NotOwner):
        d.sale.advance_phase(accounts["alice"], Phase.GENERAL)
    with pytest.raises(NotOwner):
        d.sale.pause(accounts["alice"], True)
    # the treasury is a separate role
    with pytest.raises(NotOwner):
        d.sale.pause(accounts["treasury"], True)


def test_purchase_rejected_while_paused(d, accounts, seed_investors):
    d.sale.pause(accounts["admin"], True)
    with pytest.raises(Paused):
        d.sale.purchase(seed_investors[0], to_units(1))
    d.sale.pause(accounts["admin"], False)
    d.sale.purchase(seed_investors[0], to_units(1))


def test_zero_purchase_rejected(d, seed_investors):
    with pytest.raises(InvalidAmount):
        d.sale.purchase(seed_investors[0], 0)


def test_seed_requires_whitelist(d, accounts):
    with pytest.raises(NotWhitelisted):
        d.sale.purchase(accounts["alice"], to_units(1))


def test_seed_individual_cap(d, seed_investors):
    buyer = seed_investors[0]
    d.sale.purchase(buyer, to_units(1_000))
    d.sale.purchase(buyer, to_units(500))
    with pytest.raises(IndividualCapExceeded):
        d.sale.purchase(buyer, 1)
    assert d.sale.record(buyer).total_contributed == to_units(1_500)


def test_seed_aggregate_cap(d, seed_investors):
    for buyer in seed_investors[:10]:
        d.sale.purchase(buyer, to_units(1_500))
    assert d.sale.total_contributions == to_units(15_000)
    with pytest.raises(AggregateCapExceeded):
        d.sale.purchase(seed_investors[10], 1)


def test_seed_does_not_release_tokens(d, seed_investors):
    d.sale.purchase(seed_investors[0], to_units(1))
    assert d.token.balance_of(seed_investors[0]) == 0
    with pytest.raises(InvalidPhase):
        d.sale.claim(seed_investors[0])


def test_tokens_purchased(d, seed_investors):
    for i, buyer in enumerate(seed_investors[:3], 1):
        d.sale.purchase(buyer, to_units(i))
    assert [d.sale.tokens_purchased(b) for b in seed_investors[:3]] == [to_units(5), to_units(10), to_units(15)]


def test_purchase_moves_native_currency(d, seed_investors):
    buyer = seed_investors[0]
    before = d.chain.native.balance_of(buyer)
    d.sale.purchase(buyer, to_units(10))
    assert d.chain.native.balance_of(buyer) == before - to_units(10)
    assert d.chain.native.balance_of(d.sale.address) == to_units(10)
    assert d.sale.available_funds == to_units(10)


def test_purchase_without_funds_reverts_everything(d, seed_investors):
    buyer = seed_investors[0]
    d.chain.native.transfer(buyer, seed_investors[1], d.chain.native.balance_of(buyer))
    with pytest.raises(InsufficientBalance):
        d.sale.purchase(buyer, to_units(1))
    assert d.sale.total_contributions == 0
    assert d.sale.record(buyer).total_contributed == 0


def test_general_open_to_anyone(d, accounts):
    d.sale.advance_phase(accounts["admin"], Phase.GENERAL)
    d.sale.purchase(accounts["alice"], to_units(1))
    d.sale.purchase(accounts["treasury"], to_units(1))
    assert d.sale.is_registered(accounts["alice"])


def test_general_aggregate_cap(d, accounts, seed_investors, general_investors):
    for buyer in seed_investors[:10]:
        d.sale.purchase(buyer, to_units(1_500))
    d.sale.advance_phase(accounts["admin"], Phase.GENERAL)
    for buyer in general_investors[:15]:
        d.sale.purchase(buyer, to_units(1_000))
    assert d.sale.total_contributions == to_units(30_000)
    with pytest.raises(AggregateCapExceeded):
        d.sale.purchase(accounts["alice"], 1)


def test_general_individual_cap_counts_seed_contributions(d, accounts, seed_investors, general_investors):
    d.sale.purchase(seed_investors[0], to_units(1_000))
    d.sale.purchase(seed_investors[1], to_units(999))
    d.sale.advance_phase(accounts["admin"], Phase.GENERAL)

    d.sale.purchase(seed_investors[1], to_units(1))
    d.sale.purchase(general_investors[0], to_units(1_000))
    for buyer in (seed_investors[0], seed_investors[1], general_investors[0]):
        with pytest.raises(IndividualCapExceeded):
            d.sale.purchase(buyer, 1)


def test_claim_after_open(d, accounts, seed_investors, general_investors):
    seed, general = seed_investors[0], general_investors[0]
    d.sale.purchase(seed, to_units(100))
    d.sale.advance_phase(accounts["admin"], Phase.GENERAL)
    d.sale.purchase(seed, to_units(100))
    d.sale.purchase(general, to_units(1_000))
    d.sale.advance_phase(accounts["admin"], Phase.OPEN)

    assert d.sale.claim(seed) == to_units(1_000)
    assert d.token.balance_of(seed) == to_units(1_000)
    d.sale.claim(general)
    assert d.token.balance_of(general) == to_units(5_000)
    with pytest.raises(NothingToClaim):
        d.sale.claim(seed)


def test_claim_requires_record(open_sale, accounts, seed_investors):
    with pytest.raises(NotContributor):
        open_sale.sale.claim(accounts["carol"])
    # whitelisted but never bought
    with pytest.raises(NothingToClaim):
        open_sale.sale.claim(seed_investors[5])


def test_open_releases_immediately(open_sale, accounts):
    d = open_sale
    alice, bob = accounts["alice"], accounts["bob"]
    d.sale.purchase(alice, to_units(100))
    d.sale.purchase(alice, to_units(10))
    d.sale.purchase(bob, to_units(20))
    assert d.token.balance_of(alice) == to_units(550)
    assert d.token.balance_of(bob) == to_units(100)
    assert d.sale.tokens_purchased(alice) == to_units(550)
    with pytest.raises(NothingToClaim):
        d.sale.claim(alice)


def test_each_unit_released_once(d, accounts, seed_investors):
    buyer = seed_investors[0]
    d.sale.purchase(buyer, to_units(100))
    d.sale.advance_phase(accounts["admin"], Phase.OPEN)
    d.sale.purchase(buyer, to_units(100))
    assert d.token.balance_of(buyer) == to_units(500)
    assert d.sale.claim(buyer) == to_units(500)
    rec = d.sale.record(buyer)
    assert rec.total_claimed == rec.total_contributed * d.sale.rate
    assert d.token.balance_of(buyer) == d.sale.tokens_purchased(buyer)


def test_open_has_no_individual_cap(open_sale, accounts):
    d = open_sale
    assert d.sale.phase_individual_cap == d.sale.phase_total_cap
    d.sale.purchase(accounts["alice"], to_units(30_000))
    with pytest.raises(AggregateCapExceeded):
        d.sale.purchase(accounts["alice"], 1)
    with pytest.raises(AggregateCapExceeded):
        d.sale.purchase(accounts["bob"], 1)


@pytest.mark.parametrize("amount", [MAX_ACCUMULATOR, MAX_ACCUMULATOR + 1, 2**256])
def test_unrepresentable_amounts_hit_aggregate_cap(open_sale, accounts, amount):
    d = open_sale
    d.sale.purchase(accounts["alice"], to_units(1))
    with pytest.raises(AggregateCapExceeded):
        d.sale.purchase(accounts["alice"], amount)
    assert d.sale.total_contributions == to_units(1)


def test_phase_only_moves_forward(d, accounts):
    admin = accounts["admin"]
    with pytest.raises(InvalidPhase):
        d.sale.advance_phase(admin, Phase.SEED)
    d.sale.advance_phase(admin, Phase.GENERAL)
    with pytest.raises(InvalidPhase):
        d.sale.advance_phase(admin, Phase.GENERAL)
    with pytest.raises(InvalidPhase):
        d.sale.advance_phase(admin, Phase.SEED)
    d.sale.advance_phase(admin, Phase.OPEN)
    with pytest.raises(InvalidPhase):
        d.sale.advance_phase(admin, Phase.OPEN)


def test_seed_can_skip_to_open(d, accounts):
    d.sale.advance_phase(accounts["admin"], Phase.OPEN)
    assert d.sale.phase is Phase.OPEN
    assert d.sale.phase_total_cap == to_units(30_000)


def test_phase_started_notification(d, accounts):
    d.sale.advance_phase(accounts["admin"], Phase.GENERAL)
    ev = d.chain.events_named("PhaseStarted")[-1]
    assert ev.args == {"phase": "GENERAL", "total_cap": to_units(30_000), "individual_cap": to_units(1_000)}


def test_purchase_notification(d, seed_investors):
    d.sale.purchase(seed_investors[0], to_units(3))
    ev = d.chain.events_named("Purchase")[-1]
    assert ev.args == {"buyer": seed_investors[0], "amount": to_units(3)}


def test_failed_purchase_emits_nothing(d, accounts):
    n = len(d.chain.events)
    with pytest.raises(NotWhitelisted):
        d.sale.purchase(accounts["alice"], to_units(1))
    assert len(d.chain.events) == n


def test_withdraw_needs_open_phase(d, accounts):
    with pytest.raises(NotOpenPhase):
        d.sale.withdraw(accounts["treasury"], 1)
    d.sale.advance_phase(accounts["admin"], Phase.GENERAL)
    with pytest.raises(NotOpenPhase):
        d.sale.withdraw(accounts["treasury"], 1)


def test_withdraw_needs_treasury(open_sale, accounts):
    with pytest.raises(NotTreasury):
        open_sale.sale.withdraw(accounts["admin"], 1)


def test_withdraw_to_treasury(d, accounts, seed_investors, general_investors):
    admin, treasury = accounts["admin"], accounts["treasury"]
    d.sale.purchase(seed_investors[0], to_units(1_000))
    d.sale.advance_phase(admin, Phase.GENERAL)
    d.sale.purchase(general_investors[0], to_units(1_000))
    d.sale.advance_phase(admin, Phase.OPEN)

    before = d.chain.native.balance_of(treasury)
    d.sale.withdraw(treasury, to_units(1_000))
    d.sale.withdraw(treasury, to_units(1_000))
    assert d.chain.native.balance_of(treasury) == before + to_units(2_000)
    with pytest.raises(InvalidAmount):
        d.sale.withdraw(treasury, 1)

    d.sale.purchase(accounts["alice"], to_units(10))
    d.sale.purchase(accounts["bob"], to_units(20))
    d.sale.withdraw(treasury, to_units(30))
    assert d.sale.available_funds == 0
    assert d.chain.events_named("WithdrawToTreasury")[-1].args == {"amount": to_units(30)}
    with pytest.raises(InvalidAmount):
        d.sale.withdraw(treasury, 1)


def test_treasury_reentry_cannot_double_withdraw(open_sale, accounts):
    d = open_sale
    treasury = accounts["treasury"]
    d.sale.purchase(accounts["alice"], to_units(10))
    seen = []

    def reenter(sender, amount):
        seen.append(d.sale.available_funds)
        d.sale.withdraw(treasury, amount)

    d.chain.native.on_receive(treasury, reenter)
    before = d.chain.native.balance_of(treasury)
    with pytest.raises(InvalidAmount):
        d.sale.withdraw(treasury, to_units(10))
    # the hook saw the already-debited ledger, and the whole call was undone
    assert seen == [0]
    assert d.sale.available_funds == to_units(10)
    assert d.chain.native.balance_of(treasury) == before


def test_claimed_never_exceeds_purchased(d, accounts, seed_investors):
    admin = accounts["admin"]
    buyers = seed_investors[:4]
    for i, b in enumerate(buyers, 1):
        d.sale.purchase(b, to_units(i * 10))
    d.sale.advance_phase(admin, Phase.OPEN)
    for b in buyers[:2]:
        d.sale.claim(b)
        d.sale.purchase(b, to_units(7))
    for b in buyers:
        rec = d.sale.record(b)
        assert rec.total_claimed <= rec.total_contributed * d.sale.rate
        assert d.token.balance_of(b) == rec.total_claimed


def test_cap_errors_share_a_category(d, seed_investors):
    d.sale.purchase(seed_investors[0], to_units(1_500))
    with pytest.raises(CapError) as exc:
        d.sale.purchase(seed_investors[0], 1)
    assert exc.value.code == "INDIVIDUAL_CONTRIBUTION_EXCEEDED"


def test_config_rejects_caps_above_lifetime_ceiling(accounts):
    caps = dict(SaleConfig().caps)
    caps[Phase.OPEN] = PhaseCaps(total=to_units(200_000), individual=to_units(200_000))
    with pytest.raises(ValueError):
        deploy(accounts["admin"], accounts["treasury"], config=SaleConfig(caps=caps))


def test_config_keeps_open_individual_cap_equal_to_total(accounts):
    caps = dict(SaleConfig().caps)
    caps[Phase.OPEN] = PhaseCaps(total=to_units(30_000), individual=to_units(1_000))
    with pytest.raises(ValueError):
        deploy(accounts["admin"], accounts["treasury"], config=SaleConfig(caps=caps))
