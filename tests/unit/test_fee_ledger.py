"""Unit tests for fee structures and streamer/superfan trial windows."""

from datetime import timedelta
from decimal import Decimal

import pytest
from libs.db.kv_store import MemoryKeyValueStore
from services.merch_service.engine import MerchEngine


@pytest.mark.asyncio
@pytest.mark.unit
async def test_default_fee_structure_is_installed(merch_engine):
    structure = merch_engine.fees.active_fee_structure()

    assert structure is not None
    assert structure.base_platform_fee == Decimal("12")
    assert structure.streamer_trial_days == 60
    assert structure.superfan_trial_days == 60


@pytest.mark.asyncio
@pytest.mark.unit
async def test_streamer_without_trial_pays_base_rate(merch_engine):
    assert merch_engine.fees.current_fee("streamer-x") == Decimal("12")
    assert not merch_engine.fees.is_in_trial("streamer-x")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_trial_waives_fee_until_it_ends(merch_engine, clock):
    status = await merch_engine.fees.initialize_trial("streamer-1")

    assert status.trial_end == clock() + timedelta(days=60)
    assert merch_engine.fees.is_in_trial("streamer-1")
    assert merch_engine.fees.current_fee("streamer-1") == Decimal("0")

    clock.advance(days=61)

    assert not merch_engine.fees.is_in_trial("streamer-1")
    assert merch_engine.fees.current_fee("streamer-1") == Decimal("12")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_trial_end_is_exclusive(merch_engine, clock):
    await merch_engine.fees.initialize_trial("streamer-1")

    clock.advance(days=60)

    assert merch_engine.fees.current_fee("streamer-1") == Decimal("12")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_initialize_trial_is_idempotent(merch_engine, clock):
    first = await merch_engine.fees.initialize_trial("streamer-1")
    clock.advance(days=30)
    second = await merch_engine.fees.initialize_trial("streamer-1")

    assert second.trial_start == first.trial_start
    assert second.trial_end == first.trial_end


@pytest.mark.asyncio
@pytest.mark.unit
async def test_no_active_structure_means_no_trial(settings, clock):
    # Engine without bootstrap has no fee structure
    engine = MerchEngine(MemoryKeyValueStore(), settings=settings, clock=clock)

    assert await engine.fees.initialize_trial("streamer-1") is None
    assert engine.fees.current_fee("streamer-1") == settings.DEFAULT_PLATFORM_FEE_PERCENT


@pytest.mark.asyncio
@pytest.mark.unit
async def test_custom_rate_applies_after_trial(merch_engine, clock):
    await merch_engine.fees.initialize_trial("streamer-1")
    await merch_engine.fees.set_custom_rate("streamer-1", Decimal("8"))

    assert merch_engine.fees.current_fee("streamer-1") == Decimal("0")
    clock.advance(days=61)
    assert merch_engine.fees.current_fee("streamer-1") == Decimal("8")

    await merch_engine.fees.set_custom_rate("streamer-1", None)
    assert merch_engine.fees.current_fee("streamer-1") == Decimal("12")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_custom_rate_for_unknown_streamer(merch_engine):
    assert await merch_engine.fees.set_custom_rate("nobody", Decimal("5")) is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_post_trial_rate_follows_seeding_structure(merch_engine, clock):
    await merch_engine.fees.initialize_trial("streamer-1")
    await merch_engine.fees.add_fee_structure(
        name="Launch",
        base_platform_fee=Decimal("9"),
        streamer_trial_days=30,
        superfan_trial_days=30,
    )
    clock.advance(days=61)

    assert merch_engine.fees.current_fee("streamer-1") == Decimal("12")
    assert merch_engine.fees.current_fee("streamer-new") == Decimal("9")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_record_savings_accumulates(merch_engine):
    await merch_engine.fees.initialize_trial("streamer-1")

    await merch_engine.fees.record_savings("streamer-1", Decimal("2.50"))
    await merch_engine.fees.record_savings("streamer-1", Decimal("1.255"))
    await merch_engine.fees.record_savings("streamer-1", Decimal("-4"))
    await merch_engine.fees.record_savings("nobody", Decimal("3"))

    assert merch_engine.fees.get_status("streamer-1").total_saved == Decimal("3.76")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_superfan_waiver_is_per_pair(merch_engine, clock):
    await merch_engine.fees.initialize_superfan_trial("fan-1", "streamer-1")

    assert merch_engine.fees.is_superfan_fee_waived("fan-1", "streamer-1")
    assert not merch_engine.fees.is_superfan_fee_waived("fan-1", "streamer-2")
    assert not merch_engine.fees.is_superfan_fee_waived("fan-2", "streamer-1")
    assert merch_engine.fees.superfan_current_fee("fan-1", "streamer-1") == Decimal("0")
    assert merch_engine.fees.superfan_current_fee("fan-1", "streamer-2") == Decimal("12")

    clock.advance(days=61)

    assert not merch_engine.fees.is_superfan_fee_waived("fan-1", "streamer-1")
    assert merch_engine.fees.superfan_current_fee("fan-1", "streamer-1") == Decimal("12")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_activating_structure_deactivates_others(merch_engine):
    default = merch_engine.fees.active_fee_structure()
    draft = await merch_engine.fees.add_fee_structure(
        name="Draft",
        base_platform_fee=Decimal("10"),
        streamer_trial_days=14,
        superfan_trial_days=14,
        is_active=False,
    )
    assert merch_engine.fees.active_fee_structure().id == default.id

    await merch_engine.fees.update_fee_structure(draft.id, is_active=True)

    active = [s for s in merch_engine.fee_structure_repo.all() if s.is_active]
    assert [s.id for s in active] == [draft.id]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_default_structure_not_duplicated(merch_engine):
    await merch_engine.bootstrap()

    assert len(merch_engine.fee_structure_repo) == 1
