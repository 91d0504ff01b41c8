# /models.py
from __future__ import annotations
from typing import Dict, Optional
from datetime import datetime
import uuid

from sqlmodel import SQLModel, Field

MAX_PLAYERS = 4
MAX_NAME_LENGTH = 20
ACE_BONUS = 50

PLAYER_COLORS = [
    "hsl(0 70% 50%)",  # Red
    "hsl(210 80% 50%)",  # Blue
    "hsl(45 90% 50%)",  # Gold
    "hsl(280 70% 55%)",  # Purple
]


class Player(SQLModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    color_index: int = 0

    @property
    def color(self) -> str:
        return PLAYER_COLORS[self.color_index % len(PLAYER_COLORS)]


class Round(SQLModel):
    id: int
    scores: Dict[str, int] = Field(default_factory=dict)
    ace_holder: Optional[str] = None
    winner: Optional[str] = None

    def score_for(self, player_id: str) -> int:
        """Effective score for one player: base score plus the ace bonus."""
        bonus = ACE_BONUS if self.ace_holder == player_id else 0
        return self.scores.get(player_id, 0) + bonus


class SavedLedger(SQLModel, table=True):
    key: str = Field(primary_key=True)
    payload: str
    updated_at: datetime = Field(default_factory=datetime.utcnow)
