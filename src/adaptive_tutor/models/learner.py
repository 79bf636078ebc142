"""Learner profile models."""

from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, Field

# Rolling buffer capacities
TASK_HISTORY_LENGTH = 12
RESULT_HISTORY_LENGTH = 100
RECENT_NEW_WORDS_LENGTH = 5
FEEDBACK_HISTORY_LENGTH = 20
RECENT_MISTAKES_LENGTH = 10


class CEFRLevel(StrEnum):
    """CEFR proficiency levels supported by the tutor, lowest first."""

    A1 = "A1"
    A2 = "A2"
    B1 = "B1"
    B2 = "B2"
    C1 = "C1"

    @property
    def label(self) -> str:
        return _LEVEL_LABELS[self]

    @property
    def rank(self) -> int:
        return CEFR_LEVELS_ORDER.index(self)

    def next(self) -> "CEFRLevel | None":
        """Return the following level, or None at the top of the scale."""
        if self.rank + 1 >= len(CEFR_LEVELS_ORDER):
            return None
        return CEFR_LEVELS_ORDER[self.rank + 1]

    @classmethod
    def parse(cls, value: str) -> "CEFRLevel":
        """Parse a level code ("B1") or display label ("B1 (Intermediate)")."""
        text = value.strip()
        for level in cls:
            if text.upper() == level.value or text == level.label:
                return level
        raise ValueError(f"Unknown CEFR level: {value!r}")


_LEVEL_LABELS: dict[str, str] = {
    "A1": "A1 (Beginner)",
    "A2": "A2 (Elementary)",
    "B1": "B1 (Intermediate)",
    "B2": "B2 (Upper-Intermediate)",
    "C1": "C1 (Advanced)",
}

CEFR_LEVELS_ORDER: list[CEFRLevel] = [
    CEFRLevel.A1,
    CEFRLevel.A2,
    CEFRLevel.B1,
    CEFRLevel.B2,
    CEFRLevel.C1,
]


class MistakeRecord(BaseModel):
    """A single mistake the learner made, used to steer review tasks."""

    topic: str
    detail: str = ""


class DailyStats(BaseModel):
    """Answer counters for the current day."""

    day: date = Field(default_factory=date.today)
    completed: int = 0
    correct: int = 0


class LearnerProfile(BaseModel):
    learner_id: str
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    level: CEFRLevel | None = None
    vocabulary: dict[str, int] = Field(default_factory=dict)
    mastered_word_count: int = 0
    task_history: list[str] = Field(default_factory=list)  # task-type labels, oldest first
    result_history: list[bool] = Field(default_factory=list)
    tasks_completed: int = 0
    recent_new_words: list[str] = Field(default_factory=list)
    feedback_history: list[str] = Field(default_factory=list)
    global_preferences: list[str] = Field(default_factory=list)
    recent_mistakes: list[MistakeRecord] = Field(default_factory=list)
    daily_stats: DailyStats = Field(default_factory=DailyStats)

    @property
    def effective_level(self) -> CEFRLevel:
        """Level used for task selection; learners without placement start at A1."""
        return self.level or CEFRLevel.A1
