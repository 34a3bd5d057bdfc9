from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, NamedTuple

from game_errors import InvalidIndex
from protocol import Outcome

logger = logging.getLogger(__name__)


class HistoryEntry(NamedTuple):
    player_one: str
    player_two: str
    outcome: Outcome


@dataclass
class Score:
    wins: int = 0
    losses: int = 0
    draws: int = 0


@dataclass
class HistoryLog:
    """Append-only record of settled rounds, optionally mirrored to a JSON file."""

    _entries: list[HistoryEntry] = field(default_factory=list)
    _path: Path | None = None

    @classmethod
    def load(cls, path: str | Path) -> "HistoryLog":
        p = Path(path)
        if not p.exists():
            return cls(_path=p)
        data = json.loads(p.read_text(encoding="utf-8"))
        entries: list[HistoryEntry] = []
        for row in data.get("games", []):
            if not isinstance(row, list) or len(row) != 3:
                continue
            try:
                outcome = Outcome(int(row[2]))
            except (TypeError, ValueError):
                logger.warning("Skipping history row with unknown outcome: %r", row)
                continue
            entries.append(HistoryEntry(str(row[0]), str(row[1]), outcome))
        logger.debug("Loaded %d historical games from %s", len(entries), p)
        return cls(_entries=entries, _path=p)

    def save(self) -> None:
        self._write(self._entries)

    def append(self, entry: HistoryEntry) -> int:
        """Record a settled round and return its index.

        The file is written before the entry is kept in memory, so a failed
        write leaves the log unchanged.
        """
        self._write([*self._entries, entry])
        self._entries.append(entry)
        return len(self._entries) - 1

    def discard_last(self, entry: HistoryEntry) -> None:
        """Withdraw ``entry`` when the settlement that appended it is rolled back."""
        if not self._entries or self._entries[-1] != entry:
            raise ValueError("can only discard the most recent entry")
        self._write(self._entries[:-1])
        self._entries.pop()

    def _write(self, entries: list[HistoryEntry]) -> None:
        if self._path is None:
            return
        payload = {"games": [[e.player_one, e.player_two, int(e.outcome)] for e in entries]}
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def get(self, index: int) -> HistoryEntry:
        if index < 0 or index >= len(self._entries):
            raise InvalidIndex("please enter a valid index")
        return self._entries[index]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(list(self._entries))

    def score(self, player: str) -> Score:
        s = Score()
        for entry in self._entries:
            if player not in (entry.player_one, entry.player_two):
                continue
            if entry.outcome == Outcome.DRAW:
                s.draws += 1
            elif (entry.outcome == Outcome.PLAYER_ONE_WON) == (entry.player_one == player):
                s.wins += 1
            else:
                s.losses += 1
        return s

    def format_table(self) -> str:
        if not self._entries:
            return "(no games yet)"

        players = sorted({p for e in self._entries for p in (e.player_one, e.player_two)})
        lines: list[str] = []
        header = f"{'player':44}  {'wins':>4}  {'losses':>6}  {'draws':>5}"
        lines.append(header)
        lines.append("-" * len(header))
        for player in players:
            s = self.score(player)
            lines.append(f"{player:44}  {s.wins:>4}  {s.losses:>6}  {s.draws:>5}")
        return "\n".join(lines)
