"""Session management with Redis backend and in-memory fallback."""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from random import Random
from typing import Any, Mapping
from uuid import uuid4

import redis.asyncio as redis
from redis.exceptions import RedisError
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

from config import AppConfig, config
from core.cards import Card, Rank, Suit
from core.hand import Hand
from core.game import GameError, RoundState

logger = logging.getLogger(__name__)


class SessionNotFoundError(GameError):
    """The session id is unknown, expired, or carries a bad signature."""

    status_code = 404

    def __init__(self, session_id: str) -> None:
        super().__init__("Game not found")
        self.session_id = session_id


class StoreFailureError(GameError):
    """The session backend could not complete a read or write."""

    status_code = 500

    def __init__(self, operation: str) -> None:
        super().__init__(f"Failed to {operation} game state")
        self.operation = operation


class SessionSigner:
    """
    Sign and verify session IDs using itsdangerous.

    Tokens are issued once per session and never refreshed, so by default
    only the signature is checked and the store's sliding TTL decides when
    a session is gone.
    """

    def __init__(self, secret_key: str | None = None, max_age: int | None = None) -> None:
        """Initialize the signer with a secret key and an optional token age limit."""
        self._secret_key = secret_key or config.security.secret_key
        self._max_age = max_age
        self._serializer = URLSafeTimedSerializer(self._secret_key)

    def sign(self, session_id: str) -> str:
        """Create a signed token from a session ID."""
        return self._serializer.dumps(session_id)

    def unsign(self, token: str, max_age: int | None = None) -> str | None:
        """
        Verify and extract session_id from a signed token.

        Args:
            token: The signed token to verify
            max_age: Maximum token age in seconds (no limit when neither this
                nor the signer's max_age is set)

        Returns:
            The session ID if valid, None otherwise
        """
        max_age = max_age or self._max_age
        try:
            return self._serializer.loads(token, max_age=max_age)
        except (BadSignature, SignatureExpired):
            return None


def serialize_card(card: Card) -> dict[str, Any]:
    """Serialize a card to a dict."""
    return {"suit": card.suit.value, "rank": card.rank.value, "base_value": card.base_value}


def deserialize_card(data: Mapping[str, Any]) -> Card:
    """Deserialize a card from a dict."""
    return Card(Rank(data["rank"]), Suit(data["suit"]))


def serialize_hand(hand: Hand) -> list[dict[str, Any]]:
    """Serialize a hand to a list of cards."""
    return [serialize_card(c) for c in hand.cards]


def deserialize_hand(data: list[Mapping[str, Any]]) -> Hand:
    """Deserialize a hand from a list of cards."""
    return Hand(tuple(deserialize_card(c) for c in data))


def serialize_state(state: RoundState) -> dict[str, Any]:
    """Serialize round state for session storage."""
    return {
        "session_id": state.session_id,
        "deck": [serialize_card(c) for c in state.deck],
        "player_hand": serialize_hand(state.player_hand),
        "dealer_hand": serialize_hand(state.dealer_hand),
        "player_score": state.player_score,
        "dealer_score": state.dealer_score,
        "round_active": state.round_active,
        "status_message": state.status_message,
        "wins": state.wins,
        "losses": state.losses,
        "ties": state.ties,
    }


def deserialize_state(data: Mapping[str, Any]) -> RoundState:
    """Restore round state from session data."""
    return RoundState(
        session_id=data["session_id"],
        deck=tuple(deserialize_card(c) for c in data["deck"]),
        player_hand=deserialize_hand(data["player_hand"]),
        dealer_hand=deserialize_hand(data["dealer_hand"]),
        player_score=data["player_score"],
        dealer_score=data["dealer_score"],
        round_active=data["round_active"],
        status_message=data["status_message"],
        wins=data["wins"],
        losses=data["losses"],
        ties=data["ties"],
    )


class SessionStore(ABC):
    """
    Abstract session store.

    Records are kept in their serialized form; get/create/update hand back
    RoundState objects.
    """

    def __init__(self, ttl: int | None = None) -> None:
        self._ttl = ttl or config.session_ttl

    @abstractmethod
    async def _read(self, session_id: str) -> dict[str, Any] | None:
        """Get raw session data."""
        ...

    @abstractmethod
    async def _write(self, session_id: str, data: dict[str, Any]) -> None:
        """Set raw session data."""
        ...

    @abstractmethod
    async def delete(self, session_id: str) -> None:
        """Delete session."""
        ...

    async def close(self) -> None:
        """Release backend resources."""

    async def exists(self, session_id: str) -> bool:
        """Check if session exists."""
        return await self._read(session_id) is not None

    async def get(self, session_id: str) -> RoundState | None:
        """Get session state, or None if it is unknown or expired."""
        data = await self._read(session_id)
        if data is None:
            return None
        return deserialize_state(data)

    async def create(self, rng: Random | None = None) -> RoundState:
        """Create a new session in its pre-deal state."""
        state = RoundState.new(self.create_session_id(), rng=rng)
        await self._write(state.session_id, serialize_state(state))
        return state

    async def update(self, session_id: str, changes: Mapping[str, Any]) -> RoundState:
        """
        Merge serialized fields into an existing session.

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        existing = await self._read(session_id)
        if existing is None:
            raise SessionNotFoundError(session_id)
        updated = {**existing, **changes, "session_id": session_id}
        await self._write(session_id, updated)
        return deserialize_state(updated)

    def create_session_id(self) -> str:
        """Create a new raw session ID."""
        return str(uuid4())


class InMemorySessionStore(SessionStore):
    """In-memory session store for local development."""

    def __init__(self, ttl: int | None = None) -> None:
        super().__init__(ttl)
        self._sessions: dict[str, tuple[dict[str, Any], datetime]] = {}

    async def _read(self, session_id: str) -> dict[str, Any] | None:
        """Get session data."""
        if session_id not in self._sessions:
            return None

        data, expiry = self._sessions[session_id]
        if expiry < datetime.now():
            await self.delete(session_id)
            return None

        return data

    async def _write(self, session_id: str, data: dict[str, Any]) -> None:
        """Set session data, dropping any sessions that have expired."""
        now = datetime.now()
        self._sweep(now)
        self._sessions[session_id] = (data, now + timedelta(seconds=self._ttl))

    async def delete(self, session_id: str) -> None:
        """Delete session."""
        self._sessions.pop(session_id, None)

    async def cleanup_expired(self) -> int:
        """Remove expired sessions."""
        return self._sweep(datetime.now())

    def _sweep(self, now: datetime) -> int:
        expired = [
            sid for sid, (_, expiry) in self._sessions.items() if expiry < now
        ]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.debug("Dropped %d expired sessions", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)


class RedisSessionStore(SessionStore):
    """Redis-backed session store."""

    def __init__(self, redis_client: redis.Redis, ttl: int | None = None) -> None:
        super().__init__(ttl)
        self._redis = redis_client
        self._prefix = "blackjack:session:"

    def _key(self, session_id: str) -> str:
        """Get Redis key for session."""
        return f"{self._prefix}{session_id}"

    async def _read(self, session_id: str) -> dict[str, Any] | None:
        """Get session data."""
        try:
            data = await self._redis.get(self._key(session_id))
        except RedisError as exc:
            logger.error("Redis read failed for %s: %s", session_id, exc)
            raise StoreFailureError("get") from exc
        if data is None:
            return None
        return json.loads(data)

    async def _write(self, session_id: str, data: dict[str, Any]) -> None:
        """Set session data."""
        try:
            await self._redis.setex(
                self._key(session_id),
                self._ttl,
                json.dumps(data),
            )
        except RedisError as exc:
            logger.error("Redis write failed for %s: %s", session_id, exc)
            raise StoreFailureError("save") from exc

    async def delete(self, session_id: str) -> None:
        """Delete session."""
        try:
            await self._redis.delete(self._key(session_id))
        except RedisError as exc:
            raise StoreFailureError("delete") from exc

    async def close(self) -> None:
        """Close the Redis connection pool."""
        await self._redis.aclose()


async def connect_session_store(app_config: AppConfig = config) -> SessionStore:
    """
    Build the session store described by the configuration.

    Uses Redis when it is enabled and answers a ping, otherwise falls back
    to an in-memory store.
    """
    if app_config.redis.enabled:
        redis_client = redis.from_url(app_config.redis.url)
        try:
            await redis_client.ping()
        except (RedisError, OSError) as exc:
            logger.warning(
                "Redis unavailable at %s:%d (%s); using in-memory sessions",
                app_config.redis.host,
                app_config.redis.port,
                exc,
            )
            await redis_client.aclose()
        else:
            logger.info("Using Redis session store at %s:%d", app_config.redis.host, app_config.redis.port)
            return RedisSessionStore(redis_client, ttl=app_config.session_ttl)

    return InMemorySessionStore(ttl=app_config.session_ttl)
