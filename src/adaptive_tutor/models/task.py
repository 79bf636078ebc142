"""Task, instruction and grading models."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from adaptive_tutor.models.learner import CEFRLevel, MistakeRecord


class TaskType(StrEnum):
    """Exercise categories the generator can be asked for."""

    FILL_IN_THE_BLANKS = "fill-in-the-blanks"
    SENTENCE_CONSTRUCTION = "sentence-construction"
    ERROR_CORRECTION = "error-correction"
    ROLE_PLAY = "role-play"
    IMAGE = "image"
    READING = "reading"
    GRAMMAR = "grammar"
    VOCABULARY = "vocabulary"
    STORY = "story"
    EDITING = "editing"

    @property
    def is_interactive(self) -> bool:
        """Interactive tasks take free-text answers graded by the generator."""
        return self in INTERACTIVE_TASK_TYPES


INTERACTIVE_TASK_TYPES: frozenset[TaskType] = frozenset({
    TaskType.SENTENCE_CONSTRUCTION,
    TaskType.ERROR_CORRECTION,
    TaskType.ROLE_PLAY,
    TaskType.STORY,
    TaskType.EDITING,
})


class TaskInstruction(BaseModel):
    """What to generate next and under which constraints."""

    task_type: TaskType
    level: CEFRLevel
    reason: str = "rotation"  # "mistake_review", "vocabulary_review", "production", "rotation"
    constraints: list[str] = Field(default_factory=list)
    review_words: list[str] = Field(default_factory=list)
    avoid_words: list[str] = Field(default_factory=list)
    focus_mistake: MistakeRecord | None = None
    challenge: bool = False
    preferences: list[str] = Field(default_factory=list)
    recent_feedback: list[str] = Field(default_factory=list)


class _CamelModel(BaseModel):
    # The generator answers in camelCase JSON
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class QuizQuestion(_CamelModel):
    question: str
    options: list[str]
    correct_answer: str


class LearningTask(_CamelModel):
    """Task content produced by the generator."""

    type: TaskType
    title: str = Field(min_length=1)
    level: CEFRLevel | None = None
    content: str = Field(min_length=1)
    questions: list[QuizQuestion] = Field(default_factory=list)
    context: str | None = None
    constraints: str | None = None
    words: list[str] = Field(default_factory=list)
    grammar_constraint: str | None = None
    original_text: str | None = None

    @field_validator("level", mode="before")
    @classmethod
    def _parse_level(cls, value):
        # Accept display labels such as "B1 (Intermediate)"
        if isinstance(value, str):
            return CEFRLevel.parse(value)
        return value


class TaskEvaluation(_CamelModel):
    is_correct: bool
    feedback: str
    mistake: MistakeRecord | None = None


class TaskOutcome(BaseModel):
    """Result of a completed task, fed back into the learner's state."""

    task_type: TaskType
    results: list[bool] = Field(default_factory=list)  # one per question
    words: list[str] = Field(default_factory=list)
    new_words: list[str] = Field(default_factory=list)
    mistakes: list[MistakeRecord] = Field(default_factory=list)

    @property
    def is_successful(self) -> bool:
        return bool(self.results) and all(self.results)
