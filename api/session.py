"""Per-session round storage behind signed session tokens."""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any
from uuid import uuid4

import redis.asyncio as redis
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired
from redis.exceptions import RedisError

from blackjack.cards import Card, Deck, Rank, Suit
from blackjack.game import GamePhase, Round
from blackjack.hand import Hand, Outcome
from config import config

logger = logging.getLogger(__name__)


class SessionSigner:
    """Sign and verify session IDs using itsdangerous."""

    def __init__(self, secret_key: str | None = None) -> None:
        self._serializer = URLSafeTimedSerializer(secret_key or config.security.secret_key)

    def sign(self, session_id: str) -> str:
        return self._serializer.dumps(session_id)

    def unsign(self, token: str, max_age: int | None = None) -> str | None:
        """
        Verify a token and return the session ID inside it.

        Args:
            token: Signed token handed to the client
            max_age: Maximum age in seconds (defaults to session_ttl)

        Returns:
            The session ID, or None for forged or expired tokens
        """
        try:
            return self._serializer.loads(token, max_age=max_age or config.session_ttl)
        except (BadSignature, SignatureExpired):
            return None


_session_signer: SessionSigner | None = None


def get_session_signer() -> SessionSigner:
    """Get or create the session signer."""
    global _session_signer
    if _session_signer is None:
        _session_signer = SessionSigner()
    return _session_signer


def new_session_token() -> str:
    """Mint a signed token for a fresh session. Nothing is stored until a round is saved."""
    return get_session_signer().sign(str(uuid4()))


def extract_session_id(token: str) -> str | None:
    """Return the raw session ID for a valid token, None otherwise."""
    return get_session_signer().unsign(token)


def serialize_card(card: Card) -> dict[str, int]:
    return {"rank": card.rank.value, "suit": card.suit.value}


def deserialize_card(data: Any) -> Card | None:
    """Deserialize a card from a dict, or None if the data is not a card."""
    try:
        return Card(Rank(data["rank"]), Suit(data["suit"]))
    except (KeyError, TypeError, ValueError):
        logger.warning("Dropping malformed card from session data: %r", data)
        return None


def _deserialize_cards(items: list[Any]) -> list[Card]:
    cards = (deserialize_card(item) for item in items)
    return [card for card in cards if card is not None]


def serialize_round(round_: Round) -> dict[str, Any]:
    """Serialize a round to a JSON-ready dict."""
    return {
        "phase": round_.phase.name,
        "deck": [serialize_card(c) for c in round_.deck.cards],
        "player_hand": [serialize_card(c) for c in round_.player_hand.cards],
        "dealer_hand": [serialize_card(c) for c in round_.dealer_hand.cards],
        "player_score": round_.player_score,
        "dealer_visible_score": round_.dealer_visible_score,
        "dealer_full_score": round_.dealer_full_score,
        "player_busted": round_.player_busted,
        "dealer_busted": round_.dealer_busted,
        "player_blackjack": round_.player_blackjack,
        "dealer_blackjack": round_.dealer_blackjack,
        "message": round_.message,
        "dealer_revealed": round_.dealer_revealed,
        "outcome": round_.outcome.value if round_.outcome else None,
    }


def deserialize_round(data: dict[str, Any]) -> Round:
    """
    Restore a round from its serialized form.

    Raises:
        KeyError, TypeError, ValueError: if the data does not describe a
            consistent round
    """
    outcome = data["outcome"]
    return Round(
        deck=Deck(cards=_deserialize_cards(data["deck"])),
        player_hand=Hand(cards=_deserialize_cards(data["player_hand"])),
        dealer_hand=Hand(cards=_deserialize_cards(data["dealer_hand"])),
        player_score=int(data["player_score"]),
        dealer_visible_score=int(data["dealer_visible_score"]),
        dealer_full_score=int(data["dealer_full_score"]),
        player_busted=bool(data["player_busted"]),
        dealer_busted=bool(data["dealer_busted"]),
        player_blackjack=bool(data["player_blackjack"]),
        dealer_blackjack=bool(data["dealer_blackjack"]),
        message=str(data["message"]),
        phase=GamePhase[data["phase"]],
        dealer_revealed=bool(data["dealer_revealed"]),
        outcome=Outcome(outcome) if outcome is not None else None,
    )


class SessionStore(ABC):
    """
    Holds at most one Round per session.

    Callers address a round by its signed token. Backends only move whole
    JSON payloads, so a save replaces the round in a single write.
    """

    @abstractmethod
    async def _read(self, session_id: str) -> str | bytes | None:
        ...

    @abstractmethod
    async def _write(self, session_id: str, payload: str, ttl: int) -> None:
        ...

    async def load_round(self, token: str) -> Round | None:
        """Return the session's round, or None if there is no usable one."""
        session_id = extract_session_id(token)
        if session_id is None:
            return None

        payload = await self._read(session_id)
        if payload is None:
            return None

        try:
            return deserialize_round(json.loads(payload))
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Discarding unreadable round in session: %s", exc)
            return None

    async def save_round(self, token: str, round_: Round, ttl: int | None = None) -> None:
        """
        Replace the session's round.

        Raises:
            ValueError: if the token is forged or expired
        """
        session_id = extract_session_id(token)
        if session_id is None:
            raise ValueError("Invalid session token")
        await self._write(session_id, json.dumps(serialize_round(round_)), ttl or config.session_ttl)


class InMemorySessionStore(SessionStore):
    """In-memory session store for local development."""

    def __init__(self) -> None:
        self._sessions: dict[str, tuple[str, datetime]] = {}

    async def _read(self, session_id: str) -> str | None:
        entry = self._sessions.get(session_id)
        if entry is None:
            return None

        payload, expiry = entry
        if expiry < datetime.now():
            del self._sessions[session_id]
            return None
        return payload

    async def _write(self, session_id: str, payload: str, ttl: int) -> None:
        self._sessions[session_id] = (payload, datetime.now() + timedelta(seconds=ttl))


class RedisSessionStore(SessionStore):
    """Redis-backed session store."""

    def __init__(self, redis_client: redis.Redis) -> None:
        self._redis = redis_client
        self._prefix = "simple-blackjack:round:"

    async def _read(self, session_id: str) -> bytes | None:
        return await self._redis.get(f"{self._prefix}{session_id}")

    async def _write(self, session_id: str, payload: str, ttl: int) -> None:
        await self._redis.setex(f"{self._prefix}{session_id}", ttl, payload)


_session_store: SessionStore | None = None


async def get_session_store() -> SessionStore:
    """Get or create the session store configured by SESSION_BACKEND."""
    global _session_store

    if _session_store is not None:
        return _session_store

    if config.session_backend == "redis":
        redis_client = redis.from_url(config.redis.url)
        try:
            await redis_client.ping()
        except (RedisError, OSError) as exc:
            logger.warning("Redis unavailable at %s (%s); using in-memory sessions", config.redis.url, exc)
            await redis_client.aclose()
        else:
            _session_store = RedisSessionStore(redis_client)
            return _session_store

    _session_store = InMemorySessionStore()
    return _session_store


async def load_round(token: str) -> Round | None:
    """Load the round for a signed session token."""
    store = await get_session_store()
    return await store.load_round(token)


async def save_round(token: str, round_: Round) -> None:
    """Save the round for a signed session token."""
    store = await get_session_store()
    await store.save_round(token, round_)
