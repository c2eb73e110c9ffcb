"""Dispatcher between the HTTP layer, the session store and the round engine."""

import asyncio
import logging
import weakref
from dataclasses import replace
from random import Random

from api.session import (
    SessionNotFoundError,
    SessionSigner,
    SessionStore,
    serialize_state,
)
from core.game import Action, RoundEnded, RoundState, apply_action

logger = logging.getLogger(__name__)


class GameDispatcher:
    """
    Maps inbound actions onto the round engine for one session store.

    Clients only ever see signed session tokens; the store is keyed by the
    raw session id inside the token. Each session's read, transition and
    write run under that session's lock so concurrent requests cannot lose
    updates.
    """

    def __init__(
        self,
        store: SessionStore,
        signer: SessionSigner | None = None,
        rng: Random | None = None,
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            store: Session store holding every game
            signer: Signs and verifies session tokens
            rng: Random number generator for shuffling (reproducible games in tests)
        """
        self.store = store
        self.signer = signer or SessionSigner()
        self._rng = rng
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    def _resolve(self, token: str) -> str:
        """Turn a client token into a raw session id."""
        session_id = self.signer.unsign(token)
        if session_id is None:
            raise SessionNotFoundError(token)
        return session_id

    async def _load(self, token: str, session_id: str) -> RoundState:
        state = await self.store.get(session_id)
        if state is None:
            raise SessionNotFoundError(token)
        return state

    async def create_session(self) -> RoundState:
        """Create a new session and return it under its signed token."""
        state = await self.store.create(rng=self._rng)
        token = self.signer.sign(state.session_id)
        logger.info("Created session %s", state.session_id)
        return replace(state, session_id=token)

    async def get_session(self, token: str) -> RoundState:
        """Fetch the current state of a session."""
        session_id = self._resolve(token)
        state = await self._load(token, session_id)
        return replace(state, session_id=token)

    async def perform_action(self, token: str, action: str) -> RoundState:
        """
        Apply an action to a session and persist the result.

        Raises:
            SessionNotFoundError: If the token is bad or the session is gone
            InvalidActionError: If the action is not deal, hit or stand
            InactiveRoundError: If hit or stand is requested between rounds
        """
        session_id = self._resolve(token)

        async with self._lock_for(session_id):
            state = await self._load(token, session_id)
            parsed = Action.parse(action)
            result = apply_action(state, parsed, rng=self._rng)
            saved = await self.store.update(session_id, serialize_state(result.state))

        if isinstance(result, RoundEnded):
            logger.info(
                "Session %s %s: %s (W%d L%d T%d)",
                session_id,
                parsed.value,
                result.outcome.name,
                saved.wins,
                saved.losses,
                saved.ties,
            )
        else:
            logger.info("Session %s %s: round continues", session_id, parsed.value)

        return replace(saved, session_id=token)

    async def get_stats(self, token: str) -> dict[str, float | int]:
        """Summarize the session tallies."""
        state = await self.get_session(token)
        rounds = state.rounds_played
        return {
            "rounds_played": rounds,
            "wins": state.wins,
            "losses": state.losses,
            "ties": state.ties,
            "win_rate": state.wins / rounds if rounds else 0.0,
        }
