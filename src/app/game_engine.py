"""
Stake-backed Rock-Paper-Scissors engine using commit-reveal.

One round at a time:

1. Two players ``join`` with a stake; the second must match the first.
2. Both ``commit_move`` a hash produced by ``commit_reveal.compute_commitment``.
3. Both ``reveal_move`` the plaintext move and secret. The second valid
   reveal settles the round. If the opponent stalls past the reveal window,
   the player who revealed takes the pot by revealing again or calling
   ``claim_timeout``.

Settlement resets the round before any value leaves custody, and every
mutating call made while a payout is in flight raises ``ReentrantCall``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Union

from commit_reveal import ZERO_HASH, is_unset, verify_commitment
from custody import Custody
from game_config import EngineConfig, TimeoutClaimPolicy
from game_errors import (
    AlreadyJoined,
    CommitmentLocked,
    GameNotReady,
    InsufficientStake,
    InvalidCommitment,
    NoRevealPending,
    NotAParticipant,
    ReentrantCall,
    RevealWindowOpen,
    SettlementFailed,
    StillCommitting,
)
from history import HistoryEntry, HistoryLog
from protocol import (
    GameOver,
    Move,
    Outcome,
    PlayerJoined,
    PlayerMadeMove,
    determine_outcome,
    is_valid_move,
    winning_outcome,
)

logger = logging.getLogger(__name__)

EMPTY_PLAYER = ""

Event = Union[PlayerJoined, PlayerMadeMove, GameOver]


@dataclass
class RoundState:
    player_one: str = EMPTY_PLAYER
    player_two: str = EMPTY_PLAYER
    initial_bet: int = 0
    player_one_stake: int = 0
    player_two_stake: int = 0
    hashed_player_one_move: str = ZERO_HASH
    hashed_player_two_move: str = ZERO_HASH
    player_one_move: Move = Move.NONE
    player_two_move: Move = Move.NONE
    first_reveal: float = 0
    commit_count: int = 0

    @property
    def is_full(self) -> bool:
        return bool(self.player_one) and bool(self.player_two)

    @property
    def pot(self) -> int:
        return self.player_one_stake + self.player_two_stake

    def slot_of(self, player: str) -> int | None:
        if not player:
            return None
        if player == self.player_one:
            return 1
        if player == self.player_two:
            return 2
        return None

    def player_in(self, slot: int) -> str:
        return self.player_one if slot == 1 else self.player_two

    def commitment_of(self, slot: int) -> str:
        return self.hashed_player_one_move if slot == 1 else self.hashed_player_two_move

    def move_of(self, slot: int) -> Move:
        return self.player_one_move if slot == 1 else self.player_two_move

    def revealed_slots(self) -> list[int]:
        return [slot for slot in (1, 2) if self.move_of(slot) != Move.NONE]


class ActionStatus(str, Enum):
    ACCEPTED = "accepted"
    IGNORED = "ignored"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class ActionResult:
    status: ActionStatus
    reason: str = ""
    events: tuple[Event, ...] = ()
    outcome: Outcome | None = None

    @property
    def ignored(self) -> bool:
        return self.status is ActionStatus.IGNORED


class GameEngine:
    def __init__(
        self,
        custody: Custody,
        *,
        config: EngineConfig | None = None,
        history: HistoryLog | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._custody = custody
        self._config = config or EngineConfig()
        self._history = history if history is not None else HistoryLog()
        self._clock = clock
        self._round = RoundState()
        self._listeners: list[Callable[[Event], None]] = []
        self._settling = False

    # --- Read accessors ---
    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def round(self) -> RoundState:
        return replace(self._round)

    @property
    def player_one(self) -> str:
        return self._round.player_one

    @property
    def player_two(self) -> str:
        return self._round.player_two

    @property
    def initial_bet(self) -> int:
        return self._round.initial_bet

    @property
    def hashed_player_one_move(self) -> str:
        return self._round.hashed_player_one_move

    @property
    def hashed_player_two_move(self) -> str:
        return self._round.hashed_player_two_move

    @property
    def player_one_move(self) -> Move:
        return self._round.player_one_move

    @property
    def player_two_move(self) -> Move:
        return self._round.player_two_move

    @property
    def first_reveal(self) -> float:
        return self._round.first_reveal

    @property
    def commit_count(self) -> int:
        return self._round.commit_count

    @property
    def pot(self) -> int:
        return self._round.pot

    @property
    def history(self) -> HistoryLog:
        return self._history

    def get_historical_game_at_index(self, index: int) -> HistoryEntry:
        return self._history.get(index)

    def subscribe(self, listener: Callable[[Event], None]) -> None:
        self._listeners.append(listener)

    # --- Operations ---
    def join(self, caller: str, stake: int) -> ActionResult:
        self._guard()
        if not caller:
            raise ValueError("caller identity must be non-empty")
        r = self._round
        if r.is_full:
            logger.debug("Ignoring join from %s: game is full", caller)
            return ActionResult(ActionStatus.IGNORED, reason="game is full")
        if r.slot_of(caller) is not None:
            raise AlreadyJoined(f"{caller} already joined this game")

        if not r.player_one:
            if stake < self._config.min_stake:
                raise InsufficientStake(f"Your bet must be at least {self._config.min_stake}")
            self._custody.receive(caller, stake)
            r.player_one = caller
            r.initial_bet = stake
            r.player_one_stake = stake
        else:
            if stake < r.initial_bet:
                raise InsufficientStake(
                    "Your bet amount needs to be greater than or equal to the initialBet"
                )
            self._custody.receive(caller, stake)
            r.player_two = caller
            r.player_two_stake = stake

        logger.info("%s joined with stake %d", caller, stake)
        return self._publish(ActionResult(ActionStatus.ACCEPTED, events=(PlayerJoined(caller),)))

    def commit_move(self, caller: str, hashed_move: str) -> ActionResult:
        self._guard()
        r = self._round
        slot = self._require_participant(caller)
        if is_unset(hashed_move):
            raise InvalidCommitment("commitment must be a non-zero hash")
        if r.revealed_slots():
            raise CommitmentLocked("moves are already being revealed")

        # Re-committing before any reveal replaces the earlier hash.
        if slot == 1:
            if is_unset(r.hashed_player_one_move):
                r.commit_count += 1
            r.hashed_player_one_move = hashed_move
        else:
            if is_unset(r.hashed_player_two_move):
                r.commit_count += 1
            r.hashed_player_two_move = hashed_move

        logger.info("%s committed a move (%d/2)", caller, r.commit_count)
        return self._publish(ActionResult(ActionStatus.ACCEPTED, events=(PlayerMadeMove(caller),)))

    def reveal_move(self, caller: str, move: Move | int, secret: bytes) -> ActionResult:
        self._guard()
        r = self._round
        slot = self._require_participant(caller)
        if r.commit_count < 2:
            raise StillCommitting("The game is still running!")

        if not is_valid_move(move) or not verify_commitment(
            expected_commitment=r.commitment_of(slot), move=move, secret=secret
        ):
            logger.debug("Ignoring reveal from %s: does not match commitment", caller)
            return ActionResult(ActionStatus.IGNORED, reason="reveal does not match commitment")

        move = Move(move)
        other = 3 - slot
        if r.move_of(slot) != Move.NONE:
            if r.move_of(other) == Move.NONE and self._reveal_window_elapsed():
                logger.info("%s re-revealed after the reveal window, forcing resolution", caller)
                return self._settle(winning_outcome(slot), forced=True)
            return ActionResult(ActionStatus.IGNORED, reason="move already revealed")

        if r.move_of(other) == Move.NONE:
            if slot == 1:
                r.player_one_move = move
            else:
                r.player_two_move = move
            r.first_reveal = self._clock()
            logger.info("%s revealed first", caller)
            return ActionResult(ActionStatus.ACCEPTED)

        moves = {slot: move, other: r.move_of(other)}
        return self._settle(determine_outcome(moves[1], moves[2]))

    def claim_timeout(self, caller: str) -> ActionResult:
        """Award the pot to the player who revealed once the opponent has stalled too long."""
        self._guard()
        r = self._round
        policy = self._config.timeout_claim_policy
        slot = r.slot_of(caller)
        if policy is not TimeoutClaimPolicy.ANYONE and slot is None:
            raise NotAParticipant("You did not join the game as a player")

        revealed = r.revealed_slots()
        if len(revealed) != 1:
            raise NoRevealPending("no player is waiting on an opponent's reveal")
        winner = revealed[0]
        if policy is TimeoutClaimPolicy.REVEALER and slot != winner:
            raise NotAParticipant("only the player who revealed may claim the timeout")
        if not self._reveal_window_elapsed():
            remaining = r.first_reveal + self._config.max_reveal_time - self._clock()
            raise RevealWindowOpen(f"reveal window still open for {remaining:.0f}s")

        logger.info("%s claimed the timeout for %s", caller, r.player_in(winner))
        return self._settle(winning_outcome(winner), forced=True)

    # --- Internals ---
    def _guard(self) -> None:
        if self._settling:
            raise ReentrantCall("cannot act on the game while a round is settling")

    def _require_participant(self, caller: str) -> int:
        r = self._round
        if not r.is_full:
            raise GameNotReady("Game needs more players to join first")
        slot = r.slot_of(caller)
        if slot is None:
            raise NotAParticipant("You did not join the game as a player")
        return slot

    def _reveal_window_elapsed(self) -> bool:
        return self._clock() - self._round.first_reveal >= self._config.max_reveal_time

    def _payouts(self, state: RoundState, outcome: Outcome) -> list[tuple[str, int]]:
        if outcome == Outcome.DRAW:
            return [(state.player_one, state.player_one_stake), (state.player_two, state.player_two_stake)]
        winner = state.player_one if outcome == Outcome.PLAYER_ONE_WON else state.player_two
        return [(winner, state.pot)]

    def _settle(self, outcome: Outcome, *, forced: bool = False) -> ActionResult:
        snapshot = self._round
        players = (snapshot.player_one, snapshot.player_two)
        payouts = self._payouts(snapshot, outcome)
        entry = HistoryEntry(players[0], players[1], outcome)

        self._round = RoundState()
        self._settling = True
        recorded = False
        paid: list[tuple[str, int]] = []
        try:
            # History is written before any value moves.
            self._history.append(entry)
            recorded = True
            for account, amount in payouts:
                if not self._custody.transfer(account, amount):
                    raise SettlementFailed(f"transfer of {amount} to {account} failed")
                paid.append((account, amount))
        except Exception:
            for account, amount in reversed(paid):
                self._custody.reclaim(account, amount)
            self._round = snapshot
            if recorded:
                self._history.discard_last(entry)
            logger.warning("Settlement of %s vs %s rolled back", *players)
            raise
        finally:
            self._settling = False

        logger.info(
            "Game over: %s vs %s -> %s%s", players[0], players[1], outcome.name, " (timeout)" if forced else ""
        )
        result = ActionResult(
            ActionStatus.RESOLVED,
            reason="reveal timeout" if forced else "",
            events=(GameOver(players, outcome, forced),),
            outcome=outcome,
        )
        return self._publish(result)

    def _publish(self, result: ActionResult) -> ActionResult:
        # The operation has already committed; listener failures are only logged.
        for listener in list(self._listeners):
            for event in result.events:
                try:
                    listener(event)
                except Exception:
                    logger.exception("Event listener %r failed on %r", listener, event)
        return result
