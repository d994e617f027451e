"""Tests for API endpoints."""

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from api.main import app
from api.session import new_session_token
from blackjack.cards import Card, Deck
from blackjack.game.engine import NEW_GAME_PROMPT, TURN_PROMPT


@pytest.fixture(autouse=True)
def fresh_store():
    import api.session as session_module

    session_module._session_store = None
    yield
    session_module._session_store = None


@pytest_asyncio.fixture
async def client():
    """Create test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def rig_deck(monkeypatch):
    """Make the next new game deal the given cards, in order, unshuffled."""

    def _rig(*labels: str) -> None:
        cards = [Card.from_string(label) for label in labels]
        monkeypatch.setattr(Deck, "create", classmethod(lambda cls, rng=None: cls.stacked(*cards)))
        monkeypatch.setattr(Deck, "shuffle", lambda self: None)

    return _rig


async def _new(client, session_id=None):
    headers = {"X-Session-ID": session_id} if session_id else {}
    response = await client.post("/api/game/new", headers=headers)
    assert response.status_code == 200
    return response.json()


async def _act(client, session_id, action):
    return await client.post(
        "/api/game/action",
        json={"action": action},
        headers={"X-Session-ID": session_id},
    )


@pytest.mark.asyncio
async def test_health_check(client):
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_new_game(client):
    """A shuffled new game deals two cards each."""
    data = await _new(client)

    assert data["session_id"]
    assert len(data["player_hand"]["cards"]) == 2
    assert len(data["dealer_hand"]["cards"]) == 2
    if data["game_over"]:
        assert data["outcome"] is not None
        assert not any(c["hidden"] for c in data["dealer_hand"]["cards"])
    else:
        assert data["message"] == TURN_PROMPT
        assert data["dealer_hand"]["cards"][0] == {
            "display": "[Hidden]",
            "rank": None,
            "suit": None,
            "value": None,
            "hidden": True,
        }


@pytest.mark.asyncio
async def test_new_game_keeps_valid_session(client):
    first = await _new(client)
    second = await _new(client, first["session_id"])
    assert second["session_id"] == first["session_id"]


@pytest.mark.asyncio
async def test_new_game_replaces_forged_session(client):
    data = await _new(client, "forged-token")
    assert data["session_id"] != "forged-token"


@pytest.mark.asyncio
async def test_player_turn_projection(client, rig_deck):
    rig_deck("9S", "AH", "8D", "5C")
    data = await _new(client)

    assert data["player_hand"]["value"] == 17
    assert [c["display"] for c in data["player_hand"]["cards"]] == ["9♠", "8♦"]
    assert [c["display"] for c in data["dealer_hand"]["cards"]] == ["[Hidden]", "5♣"]
    assert data["dealer_hand"]["value"] == 5
    assert data["can_hit"] and data["can_stand"]
    assert data["outcome"] is None


@pytest.mark.asyncio
async def test_player_blackjack(client, rig_deck):
    rig_deck("AS", "9H", "KD", "7C")
    data = await _new(client)

    assert data["game_over"]
    assert data["message"] == "Blackjack! Player wins!"
    assert data["outcome"] == "player_wins"
    assert data["dealer_hand"]["value"] == 16
    assert not data["can_hit"]


@pytest.mark.asyncio
async def test_hit_until_bust(client, rig_deck):
    rig_deck("6S", "10H", "4D", "7C", "10C", "9D", "5H")
    session_id = (await _new(client))["session_id"]

    response = await _act(client, session_id, "hit")
    assert response.status_code == 200
    assert response.json()["player_hand"]["value"] == 20
    assert response.json()["message"] == TURN_PROMPT

    response = await _act(client, session_id, "hit")
    data = response.json()
    assert data["player_hand"]["value"] == 29
    assert data["player_hand"]["is_busted"]
    assert data["game_over"]
    assert data["message"] == "Player busts! Dealer wins."
    assert data["dealer_hand"]["value"] == 17
    assert data["dealer_hand"]["cards"][0]["display"] == "10♥"

    # Finished rounds ignore further actions
    for action in ("hit", "stand"):
        again = await _act(client, session_id, action)
        assert again.status_code == 200
        assert again.json() == data

    state = await client.get("/api/game/state", headers={"X-Session-ID": session_id})
    assert state.json() == data


@pytest.mark.asyncio
async def test_stand(client, rig_deck):
    rig_deck("10S", "10H", "9D", "6C", "KH")
    session_id = (await _new(client))["session_id"]

    data = (await _act(client, session_id, "stand")).json()

    assert data["game_over"]
    assert data["dealer_hand"]["is_busted"]
    assert data["dealer_hand"]["value"] == 26
    assert len(data["dealer_hand"]["cards"]) == 3
    assert data["outcome"] == "player_wins"
    assert data["message"] == "Player wins!"


@pytest.mark.asyncio
async def test_new_game_action(client, rig_deck):
    rig_deck("AS", "9H", "KD", "7C")
    session_id = (await _new(client))["session_id"]

    rig_deck("6S", "10H", "4D", "7C")
    data = (await _act(client, session_id, "new_game")).json()

    assert not data["game_over"]
    assert data["player_hand"]["value"] == 10


@pytest.mark.asyncio
async def test_actions_without_round(client):
    """A session with no round shows the empty table and ignores hit/stand."""
    session_id = new_session_token()

    for action in ("hit", "stand"):
        response = await _act(client, session_id, action)
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == NEW_GAME_PROMPT
        assert data["game_over"]
        assert data["player_hand"]["cards"] == []

    state = await client.get("/api/game/state", headers={"X-Session-ID": session_id})
    assert state.json()["message"] == NEW_GAME_PROMPT


@pytest.mark.asyncio
async def test_missing_session(client):
    response = await client.post("/api/game/action", json={"action": "hit"})
    assert response.status_code == 401

    response = await client.get("/api/game/state")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_forged_session(client):
    response = await _act(client, "forged-token", "hit")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_unknown_action(client):
    session_id = (await _new(client))["session_id"]
    response = await _act(client, session_id, "double")
    assert response.status_code == 422
