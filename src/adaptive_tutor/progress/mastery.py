"""Learner state updates from completed tasks."""

from datetime import date

import structlog

from adaptive_tutor.config import Settings
from adaptive_tutor.models.learner import (
    FEEDBACK_HISTORY_LENGTH,
    RECENT_MISTAKES_LENGTH,
    RECENT_NEW_WORDS_LENGTH,
    RESULT_HISTORY_LENGTH,
    TASK_HISTORY_LENGTH,
    LearnerProfile,
)
from adaptive_tutor.models.task import TaskOutcome

logger = structlog.get_logger()

HELP_REQUEST_TEMPLATE = 'User explicitly asked for a task about: "{query}"'


def _append_capped(buffer: list, items: list, cap: int) -> list:
    """Append items and evict the oldest entries beyond cap."""
    merged = buffer + items
    return merged[-cap:] if cap > 0 else []


class MasteryTracker:
    """Applies task outcomes to a learner profile.

    Every update returns a new profile; the input is left untouched.

    Args:
        mastery_threshold: Count at which a word is retired as learned.
        task_history_length: Task-type labels kept.
        result_history_length: Per-question results kept.
        recent_new_words_length: Recently introduced words kept.
        feedback_history_length: Feedback entries kept.
        recent_mistakes_length: Mistakes kept.
    """

    def __init__(
        self,
        mastery_threshold: int = 5,
        task_history_length: int = TASK_HISTORY_LENGTH,
        result_history_length: int = RESULT_HISTORY_LENGTH,
        recent_new_words_length: int = RECENT_NEW_WORDS_LENGTH,
        feedback_history_length: int = FEEDBACK_HISTORY_LENGTH,
        recent_mistakes_length: int = RECENT_MISTAKES_LENGTH,
    ):
        self.mastery_threshold = mastery_threshold
        self.task_history_length = task_history_length
        self.result_history_length = result_history_length
        self.recent_new_words_length = recent_new_words_length
        self.feedback_history_length = feedback_history_length
        self.recent_mistakes_length = recent_mistakes_length

    @classmethod
    def from_settings(cls, settings: Settings) -> "MasteryTracker":
        return cls(
            mastery_threshold=settings.mastery_threshold,
            task_history_length=settings.task_history_length,
            result_history_length=settings.result_history_length,
            recent_new_words_length=settings.recent_new_words_length,
            feedback_history_length=settings.feedback_history_length,
            recent_mistakes_length=settings.recent_mistakes_length,
        )

    def record_outcome(
        self,
        profile: LearnerProfile,
        outcome: TaskOutcome,
        today: date | None = None,
    ) -> LearnerProfile:
        """Update histories, counters and vocabulary after a completed task.

        Args:
            profile: Current learner state.
            outcome: Grading outcome of the task.
            today: Date used for daily stats (defaults to today).

        Returns:
            Updated learner profile.
        """
        updated = profile.model_copy(deep=True)
        today = today or date.today()

        updated.task_history = _append_capped(
            updated.task_history, [outcome.task_type.value], self.task_history_length
        )
        updated.result_history = _append_capped(
            updated.result_history, list(outcome.results), self.result_history_length
        )
        updated.tasks_completed += 1

        if updated.daily_stats.day != today:
            updated.daily_stats.day = today
            updated.daily_stats.completed = 0
            updated.daily_stats.correct = 0
        updated.daily_stats.completed += len(outcome.results)
        updated.daily_stats.correct += sum(outcome.results)

        self._update_vocabulary(updated, outcome)

        updated.recent_mistakes = _append_capped(
            updated.recent_mistakes, list(outcome.mistakes), self.recent_mistakes_length
        )

        logger.info(
            "outcome_recorded",
            learner_id=updated.learner_id,
            task_type=outcome.task_type.value,
            correct=sum(outcome.results),
            total=len(outcome.results),
            tasks_completed=updated.tasks_completed,
        )
        return updated

    def _update_vocabulary(self, profile: LearnerProfile, outcome: TaskOutcome) -> None:
        for word in outcome.new_words:
            word = word.strip().lower()
            if not word:
                continue
            profile.vocabulary.setdefault(word, 0)
            recent = [w for w in profile.recent_new_words if w != word]
            profile.recent_new_words = _append_capped(
                recent, [word], self.recent_new_words_length
            )

        delta = 1 if outcome.is_successful else -1
        practised = dict.fromkeys(
            w.strip().lower() for w in [*outcome.words, *outcome.new_words] if w.strip()
        )
        for word in practised:
            # Retired or never-introduced words are not tracked
            if word not in profile.vocabulary:
                continue
            count = max(0, profile.vocabulary[word] + delta)
            if count >= self.mastery_threshold:
                profile.vocabulary.pop(word, None)
                profile.mastered_word_count += 1
                logger.info("word_mastered", learner_id=profile.learner_id, word=word)
            else:
                profile.vocabulary[word] = count

    def add_feedback(self, profile: LearnerProfile, text: str) -> LearnerProfile:
        """Store a piece of free-text feedback; blank text is ignored."""
        text = text.strip()
        if not text:
            return profile
        updated = profile.model_copy(deep=True)
        updated.feedback_history = _append_capped(
            updated.feedback_history, [text], self.feedback_history_length
        )
        logger.info("feedback_added", learner_id=updated.learner_id)
        return updated

    def record_help_request(self, profile: LearnerProfile, query: str) -> LearnerProfile:
        """Turn a learner's explicit request into one-time feedback for the next task."""
        query = query.strip()
        if not query:
            return profile
        return self.add_feedback(profile, HELP_REQUEST_TEMPLATE.format(query=query))

    @staticmethod
    def set_preferences(profile: LearnerProfile, preferences: list[str]) -> LearnerProfile:
        """Replace the learner's permanent preferences."""
        cleaned = dict.fromkeys(p.strip() for p in preferences if p.strip())
        updated = profile.model_copy(deep=True)
        updated.global_preferences = list(cleaned)
        return updated
