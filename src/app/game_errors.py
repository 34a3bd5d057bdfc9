"""
Exceptions raised by the game engine and its collaborators.

Every error is raised before the failing operation writes any state, or after
a failed settlement has been rolled back, so a caller that catches one can
assume the engine is exactly as it was.
Silent rejections (a third joiner, a reveal that does not match its
commitment) are not errors; see ``game_engine.ActionStatus.IGNORED``.
"""

from __future__ import annotations


class GameError(Exception):
    """Base class for rejected game operations."""


class InsufficientStake(GameError):
    pass


class AlreadyJoined(GameError):
    pass


class GameNotReady(GameError):
    pass


class NotAParticipant(GameError):
    pass


class StillCommitting(GameError):
    pass


class InvalidCommitment(GameError, ValueError):
    pass


class CommitmentLocked(GameError):
    pass


class NoRevealPending(GameError):
    pass


class RevealWindowOpen(GameError):
    pass


class InvalidIndex(GameError, IndexError):
    pass


class ReentrantCall(GameError):
    pass


class SettlementFailed(GameError):
    pass


class InsufficientFunds(GameError):
    pass
