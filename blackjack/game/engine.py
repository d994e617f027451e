"""Blackjack round engine with state machine."""

import logging
from dataclasses import dataclass, field
from random import Random

from transitions import Machine

from blackjack.cards import Card, Deck
from blackjack.hand import BLACKJACK, Hand, Outcome, resolve, score
from blackjack.game.dealer import DEALER_STAND_MIN, play_dealer
from blackjack.game.events import EventEmitter, EventHandler, EventType
from blackjack.game.state import GamePhase

logger = logging.getLogger(__name__)

NEW_GAME_PROMPT = 'Click "New Game" to start.'
TURN_PROMPT = "Your turn. Hit or Stand?"
PLAYER_BUST_MESSAGE = "Player busts! Dealer wins."

BLACKJACK_MESSAGES = {
    Outcome.PLAYER_WINS: "Blackjack! Player wins!",
    Outcome.DEALER_WINS: "Dealer Blackjack! Dealer wins!",
    Outcome.PUSH: "Push! Both have Blackjack!",
}

STAND_MESSAGES = {
    Outcome.PLAYER_WINS: "Player wins!",
    Outcome.DEALER_WINS: "Dealer wins!",
    Outcome.PUSH: "Push!",
}

OUTCOME_EVENTS = {
    Outcome.PLAYER_WINS: EventType.PLAYER_WINS,
    Outcome.DEALER_WINS: EventType.DEALER_WINS,
    Outcome.PUSH: EventType.PUSH,
}


@dataclass
class Round:
    """
    Everything persisted between requests for one round.

    ``dealer_visible_score`` only ever scores the dealer's face-up card
    (index 1); whether the hole card is shown is decided separately.
    """

    deck: Deck = field(default_factory=Deck)
    player_hand: Hand = field(default_factory=Hand)
    dealer_hand: Hand = field(default_factory=Hand)
    player_score: int = 0
    dealer_visible_score: int = 0
    dealer_full_score: int = 0
    player_busted: bool = False
    dealer_busted: bool = False
    player_blackjack: bool = False
    dealer_blackjack: bool = False
    message: str = NEW_GAME_PROMPT
    phase: GamePhase = GamePhase.NOT_STARTED
    dealer_revealed: bool = False
    outcome: Outcome | None = None

    def __post_init__(self) -> None:
        self.check_invariants()

    @property
    def game_over(self) -> bool:
        return self.phase == GamePhase.ROUND_OVER

    def check_invariants(self) -> None:
        """Raise ValueError if the round is in a state the engine never produces."""
        must_reveal = self.game_over or self.player_blackjack or self.dealer_blackjack
        if must_reveal and not self.dealer_revealed:
            raise ValueError("Dealer hand must be revealed once the round is decided")
        if self.game_over and self.outcome is None:
            raise ValueError("A finished round must have an outcome")
        if not self.game_over and self.outcome is not None:
            raise ValueError("An unfinished round cannot have an outcome")


@dataclass(frozen=True)
class RoundView:
    """Read-only projection of a round for display."""

    player_cards: tuple[Card, ...]
    dealer_cards: tuple[Card | None, ...]  # None marks the hidden hole card
    player_score: int
    dealer_score: int
    player_busted: bool
    dealer_busted: bool
    message: str
    game_over: bool
    can_act: bool
    outcome: Outcome | None = None


class BlackjackGame:
    """
    Round engine using a state machine.

    Wraps one Round value and moves it through its phases. Actions return
    False and leave the round untouched when they do not apply.
    """

    # State machine states
    STATES = [p.name.lower() for p in GamePhase]

    # State machine transitions
    TRANSITIONS = [
        {"trigger": "deal", "source": ["not_started", "player_turn", "round_over"], "dest": "player_turn"},
        {"trigger": "natural", "source": "player_turn", "dest": "round_over"},
        {"trigger": "player_continues", "source": "player_turn", "dest": "player_turn"},
        {"trigger": "player_busts", "source": "player_turn", "dest": "round_over"},
        {"trigger": "player_stands", "source": "player_turn", "dest": "dealer_resolving"},
        {"trigger": "dealer_done", "source": "dealer_resolving", "dest": "round_over"},
    ]

    def __init__(
        self,
        round_: Round | None = None,
        stand_min: int = DEALER_STAND_MIN,
        rng: Random | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            round_: Existing round to continue, or None before the first deal
            stand_min: Lowest total the dealer stands on
            rng: Random number generator for shuffling new decks
        """
        self.round = round_
        self.stand_min = stand_min
        self._rng = rng
        self.events = EventEmitter()

        initial = round_.phase if round_ is not None else GamePhase.NOT_STARTED
        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial=initial.name.lower(),
            auto_transitions=False,
            model_attribute="_machine_state",
            after_state_change="_sync_phase",
        )

    @property
    def state(self) -> GamePhase:
        """Get current phase as enum."""
        return GamePhase[self._machine_state.upper()]  # type: ignore

    def _sync_phase(self) -> None:
        if self.round is not None:
            self.round.phase = self.state

    def subscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        """Subscribe to game events."""
        self.events.subscribe(handler, event_type)

    @property
    def can_hit(self) -> bool:
        return self.round is not None and self.state == GamePhase.PLAYER_TURN

    @property
    def can_stand(self) -> bool:
        return self.round is not None and self.state == GamePhase.PLAYER_TURN

    def _reject(self, action: str) -> bool:
        self.events.emit_new(
            EventType.INVALID_ACTION,
            action=action,
            phase=self.state.name,
        )
        return False

    def new_game(self, deck: Deck | None = None) -> bool:
        """
        Start a fresh round, replacing any current one.

        Args:
            deck: Pre-arranged deck to deal from. A new shuffled deck is
                used when omitted.

        Returns:
            True once the initial cards are dealt
        """
        if deck is None:
            deck = Deck.create(rng=self._rng)
            deck.shuffle()
            self.events.emit_new(EventType.DECK_SHUFFLED, cards=len(deck))

        self.round = Round(deck=deck)
        self.deal()
        self.events.emit_new(EventType.ROUND_STARTED)

        player_hand = self.round.player_hand
        dealer_hand = self.round.dealer_hand

        # Deal: player, dealer (hole card), player, dealer (face up)
        self._deal_card_to_hand(player_hand, "player")
        self._deal_card_to_hand(dealer_hand, "dealer", face_up=False)
        self._deal_card_to_hand(player_hand, "player")
        self._deal_card_to_hand(dealer_hand, "dealer")

        r = self.round
        r.player_score = player_hand.value
        r.dealer_visible_score = score(dealer_hand.cards[1:2])
        r.dealer_full_score = dealer_hand.value
        r.player_blackjack = player_hand.is_blackjack
        r.dealer_blackjack = dealer_hand.is_blackjack

        if r.player_blackjack:
            self.events.emit_new(EventType.PLAYER_BLACKJACK)
        if r.dealer_blackjack:
            self.events.emit_new(EventType.DEALER_BLACKJACK)

        if r.player_blackjack or r.dealer_blackjack:
            r.dealer_revealed = True
            r.outcome = resolve(
                r.player_score,
                r.dealer_full_score,
                r.player_busted,
                r.dealer_busted,
                r.player_blackjack,
                r.dealer_blackjack,
            )
            r.message = BLACKJACK_MESSAGES[r.outcome]
            self.natural()
            self._finish()
            return True

        r.message = TURN_PROMPT
        return True

    def _deal_card_to_hand(
        self,
        hand: Hand,
        owner: str,
        face_up: bool = True,
    ) -> Card | None:
        """Deal a card to a hand, or return None if the deck is empty."""
        assert self.round is not None
        card = self.round.deck.draw()
        if card is None:
            self.events.emit_new(EventType.DECK_EXHAUSTED, hand=owner)
            return None
        hand.add_card(card)
        self.events.emit_new(
            EventType.CARD_DEALT,
            card=str(card) if face_up else "??",
            hand=owner,
        )
        return card

    def hit(self) -> bool:
        """Player hits (takes another card)."""
        if not self.can_hit:
            return self._reject("hit")

        r = self.round
        assert r is not None
        if self._deal_card_to_hand(r.player_hand, "player") is None:
            return False

        r.player_score = r.player_hand.value
        self.events.emit_new(EventType.PLAYER_HIT, hand_value=r.player_score)

        if r.player_score > BLACKJACK:
            # A bust loses outright; the dealer does not play
            r.player_busted = True
            r.dealer_revealed = True
            r.outcome = Outcome.DEALER_WINS
            r.message = PLAYER_BUST_MESSAGE
            self.events.emit_new(EventType.PLAYER_BUSTS, hand_value=r.player_score)
            self.player_busts()
            self._finish()
            return True

        r.message = TURN_PROMPT
        self.player_continues()
        return True

    def stand(self) -> bool:
        """Player stands; the dealer plays out and the round is resolved."""
        if not self.can_stand:
            return self._reject("stand")

        r = self.round
        assert r is not None
        self.events.emit_new(EventType.PLAYER_STAND, hand_value=r.player_score)

        r.dealer_revealed = True
        self.events.emit_new(
            EventType.DEALER_REVEALS,
            card=str(r.dealer_hand.cards[0]) if r.dealer_hand.cards else None,
            hand_value=r.dealer_full_score,
        )
        self.player_stands()

        result = play_dealer(r.dealer_hand, r.deck, self.stand_min)
        for card in result.drawn:
            self.events.emit_new(EventType.DEALER_HITS, card=str(card))
        if result.exhausted:
            self.events.emit_new(EventType.DECK_EXHAUSTED, hand="dealer")

        r.dealer_full_score = result.final_score
        r.dealer_busted = result.busted
        if r.dealer_busted:
            self.events.emit_new(EventType.DEALER_BUSTS, hand_value=r.dealer_full_score)
        else:
            self.events.emit_new(EventType.DEALER_STANDS, hand_value=r.dealer_full_score)

        # Blackjack flags stay as dealt; they are never re-derived here
        r.outcome = resolve(
            r.player_score,
            r.dealer_full_score,
            r.player_busted,
            r.dealer_busted,
            r.player_blackjack,
            r.dealer_blackjack,
        )
        r.message = STAND_MESSAGES[r.outcome]
        self.dealer_done()
        self._finish()
        return True

    def _finish(self) -> None:
        """Report the outcome of a round that just ended."""
        r = self.round
        assert r is not None and r.outcome is not None
        self.events.emit_new(OUTCOME_EVENTS[r.outcome])
        self.events.emit_new(
            EventType.ROUND_ENDED,
            outcome=r.outcome.value,
            player_score=r.player_score,
            dealer_score=r.dealer_full_score,
        )
        logger.debug("Round over: %s (%d vs %d)", r.outcome.value, r.player_score, r.dealer_full_score)


def new_game(
    rng: Random | None = None,
    deck: Deck | None = None,
    stand_min: int = DEALER_STAND_MIN,
) -> Round:
    """Deal a new round."""
    game = BlackjackGame(stand_min=stand_min, rng=rng)
    game.new_game(deck)
    assert game.round is not None
    return game.round


def hit(round_: Round | None) -> Round | None:
    """Apply a hit; a round that is not in the player's turn comes back unchanged."""
    if round_ is not None:
        BlackjackGame(round_).hit()
    return round_


def stand(round_: Round | None, stand_min: int = DEALER_STAND_MIN) -> Round | None:
    """Apply a stand; a round that is not in the player's turn comes back unchanged."""
    if round_ is not None:
        BlackjackGame(round_, stand_min=stand_min).stand()
    return round_


def render_inputs(round_: Round | None) -> RoundView:
    """
    Project a round onto the fields a display needs.

    The hole card is masked while the dealer is unrevealed, and the dealer
    score shown switches from the face-up card alone to the full hand once
    the dealer is revealed. With no round, an empty finished table is shown.
    """
    if round_ is None:
        return RoundView(
            player_cards=(),
            dealer_cards=(),
            player_score=0,
            dealer_score=0,
            player_busted=False,
            dealer_busted=False,
            message=NEW_GAME_PROMPT,
            game_over=True,
            can_act=False,
        )

    hide_hole_card = (
        not round_.game_over
        and not round_.dealer_revealed
        and not round_.dealer_blackjack
    )
    dealer_cards: list[Card | None] = list(round_.dealer_hand.cards)
    if hide_hole_card and dealer_cards:
        dealer_cards[0] = None

    if round_.game_over or round_.dealer_revealed:
        dealer_score = round_.dealer_full_score
    else:
        dealer_score = round_.dealer_visible_score

    return RoundView(
        player_cards=tuple(round_.player_hand.cards),
        dealer_cards=tuple(dealer_cards),
        player_score=round_.player_score,
        dealer_score=dealer_score,
        player_busted=round_.player_busted,
        dealer_busted=round_.dealer_busted,
        message=round_.message,
        game_over=round_.game_over,
        can_act=round_.phase == GamePhase.PLAYER_TURN,
        outcome=round_.outcome,
    )
