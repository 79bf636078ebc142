"""Tests for local quiz grading."""

import pytest

from adaptive_tutor.errors import GradingError
from adaptive_tutor.grading import grade_quiz, is_interactive, mistakes_from_quiz
from adaptive_tutor.models.task import LearningTask, TaskType


@pytest.fixture
def quiz():
    return LearningTask.model_validate({
        "type": "fill-in-the-blanks",
        "title": "Past Tense Practice",
        "level": "A2",
        "content": "I ___ to the store yesterday. She ___ a book.",
        "questions": [
            {"question": "Gap 1", "options": ["go", "went", "gone"], "correctAnswer": "went"},
            {"question": "Gap 2", "options": ["read", "reads", "reading"], "correctAnswer": "read"},
        ],
    })


def test_grade_quiz_per_question(quiz):
    assert grade_quiz(quiz, {0: "went", 1: "reads"}) == [True, False]


def test_missing_answer_is_wrong(quiz):
    assert grade_quiz(quiz, {1: "read"}) == [False, True]


def test_interactive_task_rejected():
    task = LearningTask(
        type=TaskType.ERROR_CORRECTION,
        title="Find and Fix the Mistake",
        level="A1",
        content="She have two cats.",
    )
    with pytest.raises(GradingError):
        grade_quiz(task, {})


def test_quiz_without_questions_rejected(quiz):
    empty = quiz.model_copy(update={"questions": []})
    with pytest.raises(GradingError):
        grade_quiz(empty, {})


def test_mistakes_from_quiz(quiz):
    mistakes = mistakes_from_quiz(quiz, {0: "goed"})
    assert len(mistakes) == 2
    assert mistakes[0].topic == "Past Tense Practice"
    assert mistakes[0].detail == 'answered "goed", expected "went"'
    assert mistakes[1].detail == 'answered "", expected "read"'


def test_is_interactive():
    assert is_interactive(TaskType.ROLE_PLAY)
    assert is_interactive(TaskType.EDITING)
    assert not is_interactive(TaskType.READING)
