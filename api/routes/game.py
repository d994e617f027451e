"""Game API endpoints."""

import logging
from fastapi import APIRouter, HTTPException, Header
from typing import Annotated

from api.schemas import (
    ActionRequest,
    CardResponse,
    HandResponse,
    RoundResponse,
)
from api.session import extract_session_id, load_round, new_session_token, save_round
from blackjack.cards import Card
from blackjack.game import BlackjackGame, GameEvent, Round, render_inputs
from config import config

logger = logging.getLogger(__name__)

router = APIRouter()

HIDDEN_CARD = "[Hidden]"


def _log_event(event: GameEvent) -> None:
    logger.info("%s", event)


def _make_game(round_: Round | None) -> BlackjackGame:
    game = BlackjackGame(round_, stand_min=config.game.dealer_stand_min)
    game.subscribe(_log_event)
    return game


def _require_session(session_id: str | None) -> str:
    """Reject missing or tampered session tokens."""
    if session_id is None or extract_session_id(session_id) is None:
        raise HTTPException(status_code=401, detail="Invalid or missing session")
    return session_id


def _card_to_response(card: Card | None) -> CardResponse:
    if card is None:
        return CardResponse(display=HIDDEN_CARD, hidden=True)
    return CardResponse(
        display=str(card),
        rank=str(card.rank),
        suit=str(card.suit),
        value=card.value,
    )


def _round_response(session_id: str, round_: Round | None) -> RoundResponse:
    """Convert a round to its display projection."""
    view = render_inputs(round_)
    return RoundResponse(
        session_id=session_id,
        player_hand=HandResponse(
            cards=[_card_to_response(c) for c in view.player_cards],
            value=view.player_score,
            is_busted=view.player_busted,
        ),
        dealer_hand=HandResponse(
            cards=[_card_to_response(c) for c in view.dealer_cards],
            value=view.dealer_score,
            is_busted=view.dealer_busted,
        ),
        message=view.message,
        game_over=view.game_over,
        can_hit=view.can_act,
        can_stand=view.can_act,
        outcome=view.outcome.value if view.outcome else None,
    )


@router.post("/new")
async def new_game(
    session_id: Annotated[str | None, Header(alias="X-Session-ID")] = None,
) -> RoundResponse:
    """Deal a new round, creating a session if needed."""
    if session_id is None or extract_session_id(session_id) is None:
        session_id = new_session_token()

    game = _make_game(None)
    game.new_game()
    assert game.round is not None
    await save_round(session_id, game.round)
    return _round_response(session_id, game.round)


@router.get("/state")
async def get_state(
    session_id: Annotated[str | None, Header(alias="X-Session-ID")] = None,
) -> RoundResponse:
    """Get the current round."""
    session_id = _require_session(session_id)
    round_ = await load_round(session_id)
    return _round_response(session_id, round_)


@router.post("/action")
async def player_action(
    request: ActionRequest,
    session_id: Annotated[str | None, Header(alias="X-Session-ID")] = None,
) -> RoundResponse:
    """
    Execute a player action.

    Actions that do not apply to the current round leave it unchanged and
    return it as-is.
    """
    session_id = _require_session(session_id)
    round_ = await load_round(session_id)
    game = _make_game(round_)

    actions = {
        "new_game": game.new_game,
        "hit": game.hit,
        "stand": game.stand,
    }

    if not actions[request.action]():
        logger.info("Ignored %s in phase %s", request.action, game.state.name)
        return _round_response(session_id, round_)

    assert game.round is not None
    await save_round(session_id, game.round)
    return _round_response(session_id, game.round)
