"""Local grading of quiz tasks."""

from adaptive_tutor.errors import GradingError
from adaptive_tutor.models.learner import MistakeRecord
from adaptive_tutor.models.task import LearningTask, TaskType


def is_interactive(task_type: TaskType) -> bool:
    return task_type.is_interactive


def grade_quiz(task: LearningTask, answers: dict[int, str]) -> list[bool]:
    """Compare chosen options with the correct answers.

    Args:
        task: A quiz task.
        answers: Chosen option per question index; missing answers count as wrong.

    Returns:
        One result per question, in question order.
    """
    if task.type.is_interactive:
        raise GradingError(f"'{task.type.value}' tasks are graded by the generator")
    if not task.questions:
        raise GradingError(f"Task '{task.title}' has no questions to grade")
    return [answers.get(i) == q.correct_answer for i, q in enumerate(task.questions)]


def mistakes_from_quiz(task: LearningTask, answers: dict[int, str]) -> list[MistakeRecord]:
    """One mistake record per wrongly answered question."""
    mistakes = []
    for i, question in enumerate(task.questions):
        answer = answers.get(i)
        if answer == question.correct_answer:
            continue
        mistakes.append(MistakeRecord(
            topic=task.title,
            detail=f'answered "{answer or ""}", expected "{question.correct_answer}"',
        ))
    return mistakes
