# tests/unit/test_ledger.py
from dropify.core.constants import GlobalDropScope
from dropify.platforms.twitch.ledger import ClaimLedger


# ── cooldowns ─────────────────────────────────────────────────────────────────

def test_no_cooldown_before_first_use(ledger):
    assert ledger.remaining_cooldown("ping", "u1") == 0


def test_cooldown_positive_right_after_set(ledger):
    ledger.set_cooldown("discount", "u1", 30)
    assert ledger.remaining_cooldown("discount", "u1") == 30


def test_cooldown_rounds_partial_seconds_up(ledger, clock):
    ledger.set_cooldown("discount", "u1", 30)
    clock.advance(29.2)
    assert ledger.remaining_cooldown("discount", "u1") == 1


def test_cooldown_reaches_zero_exactly_at_duration(ledger, clock):
    ledger.set_cooldown("discount", "u1", 30)
    clock.advance(30)
    assert ledger.remaining_cooldown("discount", "u1") == 0
    clock.advance(100)
    assert ledger.remaining_cooldown("discount", "u1") == 0


def test_cooldown_is_per_command_and_per_user(ledger):
    ledger.set_cooldown("ping", "u1", 10)
    assert ledger.remaining_cooldown("ping", "u2") == 0
    assert ledger.remaining_cooldown("help", "u1") == 0


def test_set_cooldown_overwrites_instead_of_stacking(ledger, clock):
    ledger.set_cooldown("ping", "u1", 10)
    clock.advance(5)
    ledger.set_cooldown("ping", "u1", 10)
    assert ledger.remaining_cooldown("ping", "u1") == 10
    ledger.set_cooldown("ping", "u1", 2)
    assert ledger.remaining_cooldown("ping", "u1") == 2


# ── claims ────────────────────────────────────────────────────────────────────

def test_claim_absent_by_default(ledger):
    assert ledger.get_active_claim("bob", "u1") is None


def test_claim_alive_just_before_lifetime(ledger, clock):
    ledger.record_claim("bob", "u1", "DROP-ALICE-1234")
    clock.advance(600 - 0.001)
    claim = ledger.get_active_claim("bob", "u1")
    assert claim is not None
    assert claim.code == "DROP-ALICE-1234"


def test_claim_alive_at_exact_lifetime(ledger, clock):
    ledger.record_claim("bob", "u1", "DROP-ALICE-1234")
    clock.advance(600)
    assert ledger.get_active_claim("bob", "u1") is not None


def test_claim_gone_just_after_lifetime(ledger, clock):
    ledger.record_claim("bob", "u1", "DROP-ALICE-1234")
    clock.advance(600 + 0.001)
    assert ledger.get_active_claim("bob", "u1") is None


def test_claim_scoped_to_channel(ledger):
    ledger.record_claim("bob", "u1", "DROP-ALICE-1234")
    assert ledger.get_active_claim("carol", "u1") is None


def test_record_claim_overwrites_previous(ledger, clock):
    ledger.record_claim("bob", "u1", "DROP-ALICE-1111")
    clock.advance(500)
    ledger.record_claim("bob", "u1", "DROP-ALICE-2222")
    clock.advance(500)
    claim = ledger.get_active_claim("bob", "u1")
    assert claim.code == "DROP-ALICE-2222"
    assert claim.created_at == clock.now - 500


# ── global drop gate ──────────────────────────────────────────────────────────

def test_global_drop_ready_initially(ledger):
    assert ledger.is_global_drop_ready("bob")
    assert ledger.global_drop_remaining("bob") == 0


def test_global_drop_blocks_for_five_minutes(ledger, clock):
    ledger.mark_global_drop_used("bob")
    assert not ledger.is_global_drop_ready("bob")
    assert ledger.global_drop_remaining("bob") == 300
    clock.advance(299.5)
    assert ledger.global_drop_remaining("bob") == 1
    clock.advance(0.5)
    assert ledger.is_global_drop_ready("bob")


def test_process_scope_shares_gate_across_channels(ledger):
    ledger.mark_global_drop_used("bob")
    assert not ledger.is_global_drop_ready("carol")
    assert not ledger.is_global_drop_ready()


def test_channel_scope_isolates_channels(clock):
    ledger = ClaimLedger(global_drop_scope=GlobalDropScope.CHANNEL, clock=clock)
    ledger.mark_global_drop_used("bob")
    assert not ledger.is_global_drop_ready("bob")
    assert ledger.is_global_drop_ready("carol")


def test_scope_accepts_plain_string(clock):
    ledger = ClaimLedger(global_drop_scope="channel", clock=clock)
    assert ledger.global_drop_scope is GlobalDropScope.CHANNEL
