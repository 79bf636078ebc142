"""Rule-based selection of the next practice task."""

import structlog

from adaptive_tutor.models.learner import CEFRLevel, LearnerProfile, MistakeRecord
from adaptive_tutor.models.task import TaskInstruction, TaskType

logger = structlog.get_logger()

FEEDBACK_PROMPT_LENGTH = 5
MAX_REVIEW_WORDS = 3

# Cadence of the special rules, keyed on the completed-task counter
MISTAKE_REVIEW_EVERY = 4
VOCABULARY_REVIEW_EVERY = 3
PRODUCTION_EVERY = 5

# Default task cycle for each level
ROTATIONS: dict[CEFRLevel, list[TaskType]] = {
    CEFRLevel.A1: [
        TaskType.VOCABULARY,
        TaskType.FILL_IN_THE_BLANKS,
        TaskType.IMAGE,
        TaskType.SENTENCE_CONSTRUCTION,
        TaskType.GRAMMAR,
        TaskType.READING,
    ],
    CEFRLevel.A2: [
        TaskType.FILL_IN_THE_BLANKS,
        TaskType.READING,
        TaskType.VOCABULARY,
        TaskType.GRAMMAR,
        TaskType.IMAGE,
        TaskType.ERROR_CORRECTION,
        TaskType.SENTENCE_CONSTRUCTION,
    ],
    CEFRLevel.B1: [
        TaskType.READING,
        TaskType.GRAMMAR,
        TaskType.ROLE_PLAY,
        TaskType.FILL_IN_THE_BLANKS,
        TaskType.ERROR_CORRECTION,
        TaskType.IMAGE,
        TaskType.STORY,
        TaskType.SENTENCE_CONSTRUCTION,
    ],
    CEFRLevel.B2: [
        TaskType.READING,
        TaskType.ROLE_PLAY,
        TaskType.EDITING,
        TaskType.GRAMMAR,
        TaskType.STORY,
        TaskType.ERROR_CORRECTION,
        TaskType.FILL_IN_THE_BLANKS,
        TaskType.VOCABULARY,
    ],
    CEFRLevel.C1: [
        TaskType.EDITING,
        TaskType.READING,
        TaskType.STORY,
        TaskType.ROLE_PLAY,
        TaskType.ERROR_CORRECTION,
        TaskType.GRAMMAR,
        TaskType.FILL_IN_THE_BLANKS,
    ],
}


class TaskSelector:
    """Picks the next task type and the constraints to generate it under.

    Selection is a pure function of the learner profile: the same profile
    always yields the same instruction. Special rules fire on a cadence of
    the completed-task counter; otherwise the level's rotation is followed,
    skipping the type that was just practised.

    Args:
        mastery_threshold: Count at which a word is retired; only words below
            it are offered for review.
    """

    def __init__(self, mastery_threshold: int = 5):
        self.mastery_threshold = mastery_threshold

    def select_task_type(self, profile: LearnerProfile) -> tuple[TaskType, str]:
        """Choose a task type for the learner.

        Returns:
            The task type and the name of the rule that chose it.
        """
        n = profile.tasks_completed
        level = profile.effective_level

        if profile.recent_mistakes and n % MISTAKE_REVIEW_EVERY == MISTAKE_REVIEW_EVERY - 1:
            return TaskType.ERROR_CORRECTION, "mistake_review"

        if self.review_words(profile) and n % VOCABULARY_REVIEW_EVERY == VOCABULARY_REVIEW_EVERY - 1:
            if level.rank < CEFRLevel.B1.rank:
                return TaskType.VOCABULARY, "vocabulary_review"
            return TaskType.FILL_IN_THE_BLANKS, "vocabulary_review"

        if n % PRODUCTION_EVERY == PRODUCTION_EVERY - 1:
            if level.rank < CEFRLevel.B1.rank:
                return TaskType.SENTENCE_CONSTRUCTION, "production"
            return TaskType.ROLE_PLAY, "production"

        return self._rotate(level, n, profile.task_history), "rotation"

    def review_words(self, profile: LearnerProfile) -> list[str]:
        """Words still being learned, weakest first.

        Words introduced very recently are held back unless nothing else is
        left to review.
        """
        learning = sorted(
            (count, word)
            for word, count in profile.vocabulary.items()
            if count < self.mastery_threshold
        )
        fresh = set(profile.recent_new_words)
        settled = [word for _, word in learning if word not in fresh]
        candidates = settled or [word for _, word in learning]
        return candidates[:MAX_REVIEW_WORDS]

    def build_instruction(self, profile: LearnerProfile, challenge: bool = False) -> TaskInstruction:
        """Build the full instruction for the next task.

        Args:
            profile: Learner state.
            challenge: Learner is close to a level-up test; ask for harder content.
        """
        task_type, reason = self.select_task_type(profile)
        level = profile.effective_level

        focus_mistake: MistakeRecord | None = None
        if reason == "mistake_review":
            focus_mistake = profile.recent_mistakes[-1]
        review_words = self.review_words(profile) if reason == "vocabulary_review" else []
        recent_feedback = list(reversed(profile.feedback_history[-FEEDBACK_PROMPT_LENGTH:]))
        avoid_words = [w for w in profile.recent_new_words if w not in review_words]

        constraints = [
            f"The difficulty, vocabulary and grammar MUST be strictly appropriate for the "
            f"{level.label} CEFR level."
        ]
        constraints.extend(
            f"Permanent user preference (always follow): {pref}"
            for pref in profile.global_preferences
        )
        if challenge:
            constraints.append(
                f"The learner is preparing for a level-up test. The task MUST be more "
                f"challenging than a typical {level.value} task."
            )
        if focus_mistake is not None:
            detail = f" ({focus_mistake.detail})" if focus_mistake.detail else ""
            constraints.append(
                f"Target the learner's recent mistake: {focus_mistake.topic}{detail}."
            )
        if review_words:
            constraints.append(f"The task MUST use these words: {', '.join(review_words)}.")
        if recent_feedback:
            constraints.append(
                "Take the learner's recent feedback into account; permanent preferences "
                "win on conflict: " + "; ".join(f'"{f}"' for f in recent_feedback)
            )
        if avoid_words:
            constraints.append(
                f"Do not introduce these recently learned words as new vocabulary: "
                f"{', '.join(avoid_words)}."
            )

        instruction = TaskInstruction(
            task_type=task_type,
            level=level,
            reason=reason,
            constraints=constraints,
            review_words=review_words,
            avoid_words=avoid_words,
            focus_mistake=focus_mistake,
            challenge=challenge,
            preferences=list(profile.global_preferences),
            recent_feedback=recent_feedback,
        )
        logger.info(
            "task_selected",
            learner_id=profile.learner_id,
            task_type=task_type.value,
            reason=reason,
            level=level.value,
            tasks_completed=profile.tasks_completed,
        )
        return instruction

    @staticmethod
    def _rotate(level: CEFRLevel, n: int, task_history: list[str]) -> TaskType:
        rotation = ROTATIONS[level]
        last = task_history[-1] if task_history else None
        for offset in range(len(rotation)):
            candidate = rotation[(n + offset) % len(rotation)]
            if candidate != last:
                return candidate
        return rotation[n % len(rotation)]
