"""Level-up eligibility and level-up test results."""

import structlog
from pydantic import BaseModel

from adaptive_tutor.config import Settings
from adaptive_tutor.errors import LevelUpUnavailableError
from adaptive_tutor.models.learner import CEFRLevel, LearnerProfile

logger = structlog.get_logger()

LEVEL_UP_TEST_QUESTIONS = 50


class LevelUpResult(BaseModel):
    passed: bool
    score: float
    previous_level: CEFRLevel
    new_level: CEFRLevel


class LevelProgression:
    """Decides when a learner may take a level-up test and applies its result.

    Args:
        unlock_threshold: Correct answers in the result history needed to unlock the test.
        pre_level_up_threshold: Correct answers from which tasks are made harder.
        pass_ratio: Share of correct test answers needed to advance.
    """

    def __init__(
        self,
        unlock_threshold: int = 80,
        pre_level_up_threshold: int = 50,
        pass_ratio: float = 0.8,
    ):
        self.unlock_threshold = unlock_threshold
        self.pre_level_up_threshold = pre_level_up_threshold
        self.pass_ratio = pass_ratio

    @classmethod
    def from_settings(cls, settings: Settings) -> "LevelProgression":
        return cls(
            unlock_threshold=settings.level_up_unlock_threshold,
            pre_level_up_threshold=settings.pre_level_up_threshold,
            pass_ratio=settings.level_up_pass_ratio,
        )

    @staticmethod
    def correct_count(profile: LearnerProfile) -> int:
        return sum(1 for r in profile.result_history if r)

    def can_attempt_level_up(self, profile: LearnerProfile) -> bool:
        if profile.level is None or profile.level.next() is None:
            return False
        return self.correct_count(profile) >= self.unlock_threshold

    def is_pre_level_up(self, profile: LearnerProfile) -> bool:
        """Learner is close to unlocking the test; tasks should be harder."""
        correct = self.correct_count(profile)
        return self.pre_level_up_threshold <= correct < self.unlock_threshold

    def apply_level_up_result(
        self, profile: LearnerProfile, score: float
    ) -> tuple[LearnerProfile, LevelUpResult]:
        """Apply a level-up test score.

        The level moves at most one step forward. The result history is
        cleared whether or not the test was passed.

        Args:
            profile: Current learner state.
            score: Share of correct answers, 0-1.

        Returns:
            Updated profile and the test result.

        Raises:
            LevelUpUnavailableError: The learner has no level or is already at the top.
            ValueError: Score is outside 0-1.
        """
        if not 0.0 <= score <= 1.0:
            raise ValueError(f"Score must be between 0 and 1, got {score}")
        if profile.level is None:
            raise LevelUpUnavailableError("Learner has no level yet; take the placement test first")
        next_level = profile.level.next()
        if next_level is None:
            raise LevelUpUnavailableError(f"{profile.level.value} is the highest level")

        passed = score >= self.pass_ratio
        updated = profile.model_copy(deep=True)
        updated.level = next_level if passed else profile.level
        updated.result_history = []

        logger.info(
            "level_up_applied",
            learner_id=profile.learner_id,
            passed=passed,
            score=score,
            previous_level=profile.level.value,
            new_level=updated.level.value,
        )
        return updated, LevelUpResult(
            passed=passed,
            score=score,
            previous_level=profile.level,
            new_level=updated.level,
        )
