"""Tests for the game dispatcher."""

import asyncio
from random import Random

import pytest
import pytest_asyncio

from api.dispatcher import GameDispatcher
from api.session import (
    InMemorySessionStore,
    SessionNotFoundError,
    SessionSigner,
    serialize_state,
)
from core.game import InactiveRoundError, InvalidActionError
from deck_helpers import StackedShuffle, c, hand


@pytest_asyncio.fixture
async def store():
    """A fresh in-memory store."""
    return InMemorySessionStore(ttl=3600)


@pytest_asyncio.fixture
async def dispatcher(store):
    """Dispatcher with a seeded shuffle."""
    return GameDispatcher(store, signer=SessionSigner(secret_key="test-secret"), rng=Random(42))


class TestSessions:
    """Tests for creating and fetching sessions."""

    @pytest.mark.asyncio
    async def test_create_session_returns_signed_token(self, dispatcher, store):
        """Test that clients get a signed token, not the raw id."""
        state = await dispatcher.create_session()

        raw_id = dispatcher.signer.unsign(state.session_id)
        assert raw_id is not None
        assert raw_id != state.session_id
        assert await store.exists(raw_id)

    @pytest.mark.asyncio
    async def test_get_session(self, dispatcher):
        """Test fetching a session by token."""
        created = await dispatcher.create_session()

        fetched = await dispatcher.get_session(created.session_id)

        assert fetched == created

    @pytest.mark.asyncio
    async def test_unknown_session(self, dispatcher):
        """Test that a validly signed but unknown id is not found."""
        token = dispatcher.signer.sign("no-such-session")

        with pytest.raises(SessionNotFoundError):
            await dispatcher.get_session(token)

    @pytest.mark.asyncio
    async def test_tampered_token(self, dispatcher):
        """Test that a forged token is not found."""
        created = await dispatcher.create_session()

        with pytest.raises(SessionNotFoundError):
            await dispatcher.get_session(created.session_id + "x")

    @pytest.mark.asyncio
    async def test_raw_id_is_not_accepted(self, dispatcher):
        """Test that the unsigned id cannot be used directly."""
        created = await dispatcher.create_session()
        raw_id = dispatcher.signer.unsign(created.session_id)

        with pytest.raises(SessionNotFoundError):
            await dispatcher.get_session(raw_id)


    @pytest.mark.asyncio
    async def test_active_session_outlives_store_ttl(self):
        """Test that a session played within its TTL never expires."""
        store = InMemorySessionStore(ttl=2)
        dispatcher = GameDispatcher(store, signer=SessionSigner(secret_key="test-secret"))
        token = (await dispatcher.create_session()).session_id

        for _ in range(5):
            await asyncio.sleep(1)
            state = await dispatcher.perform_action(token, "deal")

        assert state.session_id == token
        assert len(state.player_hand) == 2


class TestActions:
    """Tests for performing actions."""

    @pytest.mark.asyncio
    async def test_deal_is_persisted(self, dispatcher, store):
        """Test that a deal is written back to the store."""
        created = await dispatcher.create_session()

        dealt = await dispatcher.perform_action(created.session_id, "deal")

        stored = await store.get(dispatcher.signer.unsign(created.session_id))
        assert dealt.session_id == created.session_id
        assert stored.player_hand == dealt.player_hand
        assert stored.deck == dealt.deck
        assert len(stored.player_hand) == 2

    @pytest.mark.asyncio
    async def test_hit_on_inactive_round_leaves_store_unchanged(self, dispatcher, store):
        """Test that a rejected hit persists nothing."""
        created = await dispatcher.create_session()
        raw_id = dispatcher.signer.unsign(created.session_id)
        before = serialize_state(await store.get(raw_id))

        with pytest.raises(InactiveRoundError):
            await dispatcher.perform_action(created.session_id, "hit")

        assert serialize_state(await store.get(raw_id)) == before

    @pytest.mark.asyncio
    async def test_invalid_action(self, dispatcher, store):
        """Test that unknown actions are rejected before touching state."""
        created = await dispatcher.create_session()

        with pytest.raises(InvalidActionError):
            await dispatcher.perform_action(created.session_id, "split")

    @pytest.mark.asyncio
    async def test_unknown_session_action(self, dispatcher):
        """Test acting on a session that does not exist."""
        with pytest.raises(SessionNotFoundError):
            await dispatcher.perform_action(dispatcher.signer.sign("gone"), "deal")

    @pytest.mark.asyncio
    async def test_blackjack_deal_counts_a_win(self, store):
        """Test a natural on the deal through the dispatcher."""
        dispatcher = GameDispatcher(
            store,
            signer=SessionSigner(secret_key="test-secret"),
            rng=StackedShuffle(c("AS"), c("QH"), c("5D"), c("5C")),
        )
        created = await dispatcher.create_session()

        state = await dispatcher.perform_action(created.session_id, "deal")

        assert state.player_hand == hand("AS", "QH")
        assert state.round_active is False
        assert state.wins == 1

    @pytest.mark.asyncio
    async def test_full_rounds_keep_tallies(self, dispatcher):
        """Test tallies across several rounds played through the store."""
        created = await dispatcher.create_session()
        token = created.session_id

        for rounds in range(1, 21):
            state = await dispatcher.perform_action(token, "deal")
            while state.round_active:
                state = await dispatcher.perform_action(token, "stand")
            assert state.rounds_played == rounds

        stats = await dispatcher.get_stats(token)
        assert stats["rounds_played"] == 20
        assert stats["wins"] + stats["losses"] + stats["ties"] == 20
        assert stats["win_rate"] == pytest.approx(stats["wins"] / 20)

    @pytest.mark.asyncio
    async def test_stats_before_any_round(self, dispatcher):
        """Test stats for a brand new session."""
        created = await dispatcher.create_session()

        stats = await dispatcher.get_stats(created.session_id)

        assert stats == {"rounds_played": 0, "wins": 0, "losses": 0, "ties": 0, "win_rate": 0.0}

    @pytest.mark.asyncio
    async def test_concurrent_actions_are_serialized(self, dispatcher):
        """Test that simultaneous deals on one session lose no updates."""
        created = await dispatcher.create_session()
        token = created.session_id

        results = await asyncio.gather(
            *(dispatcher.perform_action(token, "deal") for _ in range(10))
        )
        state = await dispatcher.get_session(token)

        naturals = sum(1 for result in results if not result.round_active)
        assert state.wins == naturals
        assert len(state.player_hand) == 2
        assert len(state.deck) == 48
