"""
GameLedger: the player roster and round history of one Rummy game.

Every mutation validates its input first and only then touches state, so a
raised error always leaves the ledger exactly as it was. Totals are derived
on read from the round history.
"""
from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional

from exceptions import (
    InvalidPlayerName,
    MalformedPersistedState,
    MaxPlayersReached,
    NoWinnerSelected,
    PlayerNotFound,
    RoundNotFound,
)
from models import ACE_BONUS, MAX_NAME_LENGTH, MAX_PLAYERS, PLAYER_COLORS, Player, Round

logger = logging.getLogger(__name__)

# Optional minus sign followed by ASCII digits
SCORE_PATTERN = re.compile(r"^-?[0-9]+\Z")


class EventKind(str, enum.Enum):
    PLAYER_JOINED = "player_joined"
    PLAYER_LEFT = "player_left"
    ROUND_ADDED = "round_added"
    ROUND_UPDATED = "round_updated"
    ROUND_DELETED = "round_deleted"
    LEDGER_RESET = "ledger_reset"
    MAX_PLAYERS_REJECTED = "max_players_rejected"
    NO_WINNER_REJECTED = "no_winner_rejected"


# Rejections are reported to listeners but leave nothing new to persist
MUTATING_EVENTS = frozenset({
    EventKind.PLAYER_JOINED,
    EventKind.PLAYER_LEFT,
    EventKind.ROUND_ADDED,
    EventKind.ROUND_UPDATED,
    EventKind.ROUND_DELETED,
    EventKind.LEDGER_RESET,
})


@dataclass(frozen=True)
class LedgerEvent:
    kind: EventKind
    player: Optional[Player] = None
    round: Optional[Round] = None

    @property
    def is_mutation(self) -> bool:
        return self.kind in MUTATING_EVENTS


Listener = Callable[[LedgerEvent], None]


def parse_score(value) -> int:
    """Turn form input into an integer score.

    Empty text, a lone ``-`` and anything else that does not parse as an
    integer count as 0.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if value is None:
        return 0
    text = str(value).strip()
    if not SCORE_PATTERN.match(text):
        return 0
    return int(text)


class GameLedger:
    """Roster of up to four players plus the history of scored rounds."""

    def __init__(self, players=None, rounds=None, next_round_id: Optional[int] = None):
        self._players: List[Player] = list(players or [])
        self._rounds: List[Round] = list(rounds or [])
        highest = max((r.id for r in self._rounds), default=0)
        self._next_round_id = max(next_round_id or 1, highest + 1)
        self._listeners: List[Listener] = []

    # ---- read access ----
    @property
    def players(self) -> List[Player]:
        return list(self._players)

    @property
    def rounds(self) -> List[Round]:
        return list(self._rounds)

    @property
    def next_round_id(self) -> int:
        return self._next_round_id

    @property
    def is_full(self) -> bool:
        return len(self._players) >= MAX_PLAYERS

    def get_player(self, player_id: str) -> Player:
        for p in self._players:
            if p.id == player_id:
                return p
        raise PlayerNotFound(player_id)

    def get_round(self, round_id: int) -> Round:
        for r in self._rounds:
            if r.id == round_id:
                return r
        raise RoundNotFound(round_id)

    def player_name(self, player_id: Optional[str]) -> str:
        """Display name for an id, or "" when unset or no longer registered."""
        for p in self._players:
            if p.id == player_id:
                return p.name
        return ""

    # ---- events ----
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _emit(self, kind: EventKind, player: Optional[Player] = None, round: Optional[Round] = None) -> None:
        event = LedgerEvent(kind=kind, player=player, round=round)
        for listener in list(self._listeners):
            listener(event)

    # ---- roster ----
    def add_player(self, name: str) -> Player:
        clean = (name or "").strip()
        if not clean:
            raise InvalidPlayerName("Player name must not be empty")
        if len(clean) > MAX_NAME_LENGTH:
            raise InvalidPlayerName(f"Player name must be at most {MAX_NAME_LENGTH} characters")
        if self.is_full:
            logger.info(f"Rejected player {clean!r}: roster full")
            self._emit(EventKind.MAX_PLAYERS_REJECTED)
            raise MaxPlayersReached(MAX_PLAYERS)

        # Without removals this is simply the join position
        taken = {p.color_index for p in self._players}
        slot = next(i for i in range(len(PLAYER_COLORS)) if i not in taken)
        player = Player(name=clean, color_index=slot)
        self._players.append(player)
        logger.info(f"Player {player.id} ({clean}) joined in slot {slot}")
        self._emit(EventKind.PLAYER_JOINED, player=player)
        return player

    def remove_player(self, player_id: str) -> Player:
        player = self.get_player(player_id)
        self._players = [p for p in self._players if p.id != player_id]
        for r in self._rounds:
            r.scores.pop(player_id, None)
            if r.ace_holder == player_id:
                r.ace_holder = None
            if r.winner == player_id:
                r.winner = None
        logger.info(f"Player {player_id} ({player.name}) removed")
        self._emit(EventKind.PLAYER_LEFT, player=player)
        return player

    # ---- rounds ----
    def _check_round_fields(self, scores: Mapping[str, int], ace_holder, winner) -> Dict[str, int]:
        known = {p.id for p in self._players}
        for pid in (ace_holder, winner):
            if pid is not None and pid not in known:
                raise PlayerNotFound(pid)
        clean = {}
        for pid, value in (scores or {}).items():
            if pid not in known:
                raise PlayerNotFound(pid)
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"Score for {pid} must be an int, got {value!r}")
            clean[pid] = value
        return clean

    def add_round(self, scores: Mapping[str, int], ace_holder: Optional[str] = None,
                  winner: Optional[str] = None) -> Round:
        if winner is None:
            self._emit(EventKind.NO_WINNER_REJECTED)
            raise NoWinnerSelected()
        clean = self._check_round_fields(scores, ace_holder, winner)

        rnd = Round(id=self._next_round_id, scores=clean, ace_holder=ace_holder, winner=winner)
        self._next_round_id += 1
        self._rounds.append(rnd)
        logger.info(f"Round {rnd.id} recorded (winner={winner}, ace={ace_holder})")
        self._emit(EventKind.ROUND_ADDED, round=rnd)
        return rnd

    def edit_round(self, round_id: int, scores: Mapping[str, int], ace_holder: Optional[str] = None,
                   winner: Optional[str] = None) -> Round:
        # Unlike add_round, a missing winner is accepted here
        rnd = self.get_round(round_id)
        clean = self._check_round_fields(scores, ace_holder, winner)
        rnd.scores = clean
        rnd.ace_holder = ace_holder
        rnd.winner = winner
        logger.info(f"Round {round_id} updated")
        self._emit(EventKind.ROUND_UPDATED, round=rnd)
        return rnd

    def delete_round(self, round_id: int) -> Round:
        rnd = self.get_round(round_id)
        self._rounds = [r for r in self._rounds if r is not rnd]
        logger.info(f"Round {round_id} deleted")
        self._emit(EventKind.ROUND_DELETED, round=rnd)
        return rnd

    def reset_all(self) -> None:
        self._players = []
        self._rounds = []
        self._next_round_id = 1
        logger.info("Ledger reset")
        self._emit(EventKind.LEDGER_RESET)

    # ---- derived ----
    def totals(self) -> Dict[str, int]:
        totals = {p.id: 0 for p in self._players}
        for r in self._rounds:
            for pid, score in r.scores.items():
                if pid in totals:
                    totals[pid] += score
            if r.ace_holder in totals:
                totals[r.ace_holder] += ACE_BONUS
        return totals

    def leader(self) -> Optional[str]:
        totals = self.totals()
        leader_id = None
        best = None
        for p in self._players:
            if best is None or totals[p.id] > best:
                best = totals[p.id]
                leader_id = p.id
        return leader_id

    def standings(self) -> List[Player]:
        """Players ordered by total, highest first; ties keep join order."""
        totals = self.totals()
        return sorted(self._players, key=lambda p: -totals[p.id])

    # ---- persistence shape ----
    def to_dict(self) -> dict:
        return {
            "players": [{"id": p.id, "name": p.name, "color": p.color} for p in self._players],
            "rounds": [
                {"id": r.id, "scores": dict(r.scores), "aceHolder": r.ace_holder, "winner": r.winner}
                for r in self._rounds
            ],
            "nextRoundId": self._next_round_id,
        }

    @classmethod
    def from_dict(cls, data) -> "GameLedger":
        if not isinstance(data, dict):
            raise MalformedPersistedState(f"Expected an object, got {type(data).__name__}")
        try:
            players = []
            for i, raw in enumerate(data.get("players") or []):
                color = raw.get("color")
                slot = PLAYER_COLORS.index(color) if color in PLAYER_COLORS else i % len(PLAYER_COLORS)
                players.append(Player(id=str(raw["id"]), name=str(raw["name"]), color_index=slot))
            rounds = []
            for raw in data.get("rounds") or []:
                rounds.append(Round(
                    id=int(raw["id"]),
                    scores={str(k): int(v) for k, v in (raw.get("scores") or {}).items()},
                    ace_holder=raw.get("aceHolder"),
                    winner=raw.get("winner"),
                ))
            next_round_id = int(data.get("nextRoundId") or 1)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise MalformedPersistedState(str(exc)) from exc
        # Older saves stamped ids from the round count, so repeats are possible
        next_round_id = max(next_round_id, max((r.id for r in rounds), default=0) + 1)
        seen = set()
        for r in rounds:
            if r.id in seen:
                logger.warning(f"Duplicate stored round id {r.id}, renumbered to {next_round_id}")
                r.id = next_round_id
                next_round_id += 1
            seen.add(r.id)
        if len(players) > MAX_PLAYERS:
            raise MalformedPersistedState(f"{len(players)} players stored, at most {MAX_PLAYERS} allowed")
        return cls(players=players, rounds=rounds, next_round_id=next_round_id)
