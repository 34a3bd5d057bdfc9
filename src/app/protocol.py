from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class Move(IntEnum):
    NONE = 0
    ROCK = 1
    PAPER = 2
    SCISSORS = 3


class Outcome(IntEnum):
    DRAW = 0
    PLAYER_ONE_WON = 1
    PLAYER_TWO_WON = 2


# (winner, loser)
_BEATS = {
    (Move.ROCK, Move.SCISSORS),
    (Move.SCISSORS, Move.PAPER),
    (Move.PAPER, Move.ROCK),
}


def is_valid_move(value: int) -> bool:
    return value in (Move.ROCK, Move.PAPER, Move.SCISSORS)


def determine_outcome(player_one: Move, player_two: Move) -> Outcome:
    if not is_valid_move(player_one) or not is_valid_move(player_two):
        raise ValueError(f"cannot score unrevealed moves: {player_one!r} vs {player_two!r}")
    if player_one == player_two:
        return Outcome.DRAW
    return Outcome.PLAYER_ONE_WON if (player_one, player_two) in _BEATS else Outcome.PLAYER_TWO_WON


def winning_outcome(slot: int) -> Outcome:
    """Outcome recorded when the player in ``slot`` (1 or 2) takes the pot."""
    return Outcome.PLAYER_ONE_WON if slot == 1 else Outcome.PLAYER_TWO_WON


@dataclass(frozen=True)
class PlayerJoined:
    player: str


@dataclass(frozen=True)
class PlayerMadeMove:
    player: str


@dataclass(frozen=True)
class GameOver:
    players: tuple[str, str]
    outcome: Outcome
    forced: bool = False
