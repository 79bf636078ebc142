"""Initial placement: starting level from a multiple-choice assessment."""

from collections import Counter

import structlog
from pydantic import BaseModel

from adaptive_tutor.models.learner import CEFR_LEVELS_ORDER, CEFRLevel

logger = structlog.get_logger()

PLACEMENT_PASS_RATIO = 0.5

# Questions per level in the placement test; C1 is reached through level-ups only
PLACEMENT_DISTRIBUTION: dict[CEFRLevel, int] = {
    CEFRLevel.A1: 6,
    CEFRLevel.A2: 7,
    CEFRLevel.B1: 9,
    CEFRLevel.B2: 8,
}
PLACEMENT_TEST_QUESTIONS = sum(PLACEMENT_DISTRIBUTION.values())


class PlacementAnswer(BaseModel):
    level: CEFRLevel
    is_correct: bool


def determine_level(answers: list[PlacementAnswer]) -> CEFRLevel:
    """Walk the levels upwards while at least half the answers per level are correct.

    Levels without questions are skipped; the first failed level stops the walk.
    """
    asked = Counter(a.level for a in answers)
    correct = Counter(a.level for a in answers if a.is_correct)

    result = CEFRLevel.A1
    for level in CEFR_LEVELS_ORDER:
        if asked[level] == 0:
            continue
        if correct[level] / asked[level] >= PLACEMENT_PASS_RATIO:
            result = level
        else:
            break

    logger.info("placement_determined", level=result.value, answers=len(answers))
    return result
