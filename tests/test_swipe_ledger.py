"""Swipe ledger tests."""

import asyncio

import pytest

from models.enums import SwipeAction
from services.errors import DuplicateSwipeError, NotFoundError, ValidationError
from services.swipe_ledger import SwipeLedger
from tests.conftest import OWNER_A, OWNER_B, OWNER_C


@pytest.fixture
async def pair(make_active_intent):
    """Ids of two active intents owned by different participants."""
    a = await make_active_intent(OWNER_A)
    b = await make_active_intent(OWNER_B)
    return a.id, b.id


async def test_record_stores_decision_and_metadata(ledger, pair, clock):
    a, b = pair

    swipe = await ledger.record(a, b, "right", {"view_duration": 4200, "media_viewed": ["ipfs://cover"]})

    assert swipe.intent_id == a
    assert swipe.target_intent_id == b
    assert swipe.action == SwipeAction.RIGHT
    assert swipe.view_duration == 4200
    assert swipe.media_viewed == ["ipfs://cover"]
    assert swipe.swiped_at == clock.now


async def test_second_record_for_same_ordered_pair_is_duplicate(ledger, pair):
    a, b = pair
    await ledger.record(a, b, SwipeAction.RIGHT)

    with pytest.raises(DuplicateSwipeError):
        await ledger.record(a, b, SwipeAction.RIGHT)
    with pytest.raises(DuplicateSwipeError):
        await ledger.record(a, b, SwipeAction.LEFT)


async def test_opposite_direction_is_a_separate_pair(ledger, pair):
    a, b = pair
    await ledger.record(a, b, SwipeAction.RIGHT)

    swipe = await ledger.record(b, a, SwipeAction.LEFT)

    assert swipe.action == SwipeAction.LEFT


async def test_self_swipe_is_rejected(ledger, pair):
    a, _ = pair
    with pytest.raises(ValidationError):
        await ledger.record(a, a, SwipeAction.RIGHT)


async def test_unknown_action_is_rejected(ledger, pair):
    a, b = pair
    with pytest.raises(ValidationError):
        await ledger.record(a, b, "up")


@pytest.mark.parametrize("metadata", [{"view_duration": -1}, {"view_duration": "long"}, {"media_viewed": "x"}])
async def test_bad_metadata_is_rejected(ledger, pair, metadata):
    a, b = pair
    with pytest.raises(ValidationError):
        await ledger.record(a, b, SwipeAction.RIGHT, metadata)


async def test_missing_target_is_not_found(ledger, pair):
    a, _ = pair
    with pytest.raises(NotFoundError):
        await ledger.record(a, 424242, SwipeAction.RIGHT)


async def test_missing_source_is_not_found(ledger, pair):
    _, b = pair
    with pytest.raises(NotFoundError):
        await ledger.record(424242, b, SwipeAction.RIGHT)
    assert await ledger.find_swipe(424242, b) is None


async def test_reciprocal_check_looks_at_the_other_direction(ledger, pair):
    a, b = pair
    await ledger.record(a, b, SwipeAction.RIGHT)

    assert await ledger.has_reciprocal_right(b, a)
    assert not await ledger.has_reciprocal_right(a, b)


async def test_left_swipe_is_not_reciprocal_right(ledger, pair):
    a, b = pair
    await ledger.record(a, b, SwipeAction.LEFT)

    assert not await ledger.has_reciprocal_right(b, a)


async def test_find_and_mutual_right(ledger, pair):
    a, b = pair
    assert await ledger.find_swipe(a, b) is None
    assert not await ledger.is_mutual_right(a, b)

    await ledger.record(a, b, SwipeAction.RIGHT)
    assert not await ledger.is_mutual_right(a, b)

    await ledger.record(b, a, SwipeAction.RIGHT)
    assert await ledger.is_mutual_right(a, b)
    assert await ledger.is_mutual_right(b, a)
    assert (await ledger.find_swipe(b, a)).action == SwipeAction.RIGHT


async def test_swiped_targets_and_history(ledger, pair, make_active_intent, clock):
    a, b = pair
    c = (await make_active_intent(OWNER_C)).id
    await ledger.record(a, b, SwipeAction.LEFT)
    clock.advance(seconds=5)
    await ledger.record(a, c, SwipeAction.RIGHT)

    assert sorted(await ledger.swiped_target_ids(a)) == sorted([b, c])
    assert await ledger.swiped_target_ids(b) == []
    assert [s.target_intent_id for s in await ledger.list_for_intent(a)] == [c, b]


async def test_concurrent_records_for_same_pair_store_exactly_one(session_factory, pair, clock):
    a, b = pair

    async def submit():
        async with session_factory() as session:
            return await SwipeLedger(session, clock=clock).record(a, b, SwipeAction.RIGHT)

    results = await asyncio.gather(submit(), submit(), return_exceptions=True)

    assert sum(not isinstance(r, BaseException) for r in results) == 1
    assert sum(isinstance(r, DuplicateSwipeError) for r in results) == 1
    async with session_factory() as session:
        assert await SwipeLedger(session).swiped_target_ids(a) == [b]
