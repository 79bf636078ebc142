"""REST API routes for the practice loop."""

import functools
import re

import structlog
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from adaptive_tutor.config import get_settings
from adaptive_tutor.errors import GenerationError, GradingError, LevelUpUnavailableError
from adaptive_tutor.generation.generator import AssessmentQuestion, TaskGenerator
from adaptive_tutor.grading import grade_quiz, is_interactive, mistakes_from_quiz
from adaptive_tutor.models.learner import LearnerProfile
from adaptive_tutor.models.task import LearningTask, TaskEvaluation, TaskOutcome
from adaptive_tutor.progress.levels import LevelProgression, LevelUpResult
from adaptive_tutor.progress.mastery import MasteryTracker
from adaptive_tutor.progress.placement import PlacementAnswer, determine_level
from adaptive_tutor.selection.prompt_engine import get_prompt_engine
from adaptive_tutor.selection.selector import TaskSelector
from adaptive_tutor.storage import learner_profile as store

logger = structlog.get_logger()
router = APIRouter(prefix="/api")

_LEARNER_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


class FeedbackRequest(BaseModel):
    text: str = Field(min_length=1)


class HelpRequest(BaseModel):
    query: str = Field(min_length=1)


class PreferencesRequest(BaseModel):
    preferences: list[str]


class PlacementRequest(BaseModel):
    answers: list[PlacementAnswer]


class LevelUpRequest(BaseModel):
    score: float = Field(ge=0.0, le=1.0)


class QuizSubmission(BaseModel):
    task: LearningTask
    answers: dict[int, str] = Field(default_factory=dict)
    new_words: list[str] = Field(default_factory=list)


class InteractiveSubmission(BaseModel):
    task: LearningTask
    user_input: str
    new_words: list[str] = Field(default_factory=list)


def validate_learner_id(learner_id: str) -> str:
    if not _LEARNER_ID_RE.match(learner_id):
        raise HTTPException(status_code=400, detail="Invalid learner ID format")
    return learner_id


def _selector() -> TaskSelector:
    return TaskSelector(mastery_threshold=get_settings().mastery_threshold)


def _tracker() -> MasteryTracker:
    return MasteryTracker.from_settings(get_settings())


def _progression() -> LevelProgression:
    return LevelProgression.from_settings(get_settings())


@functools.lru_cache
def get_generator() -> TaskGenerator | None:
    settings = get_settings()
    if not settings.openai_api_key:
        return None
    return TaskGenerator(
        api_key=settings.openai_api_key,
        model=settings.generation_model,
        evaluation_model=settings.evaluation_model,
    )


def _require_generator() -> TaskGenerator:
    generator = get_generator()
    if generator is None:
        raise HTTPException(status_code=503, detail="Task generation backend is not configured")
    return generator


def _progress(profile: LearnerProfile) -> dict:
    progression = _progression()
    return {
        "learner_id": profile.learner_id,
        "level": profile.level.value if profile.level else None,
        "tasks_completed": profile.tasks_completed,
        "correct_count": progression.correct_count(profile),
        "history_size": len(profile.result_history),
        "words_learning": len(profile.vocabulary),
        "words_mastered": profile.mastered_word_count,
        "can_attempt_level_up": progression.can_attempt_level_up(profile),
        "is_pre_level_up": progression.is_pre_level_up(profile),
        "daily_stats": profile.daily_stats.model_dump(mode="json"),
    }


def _record(profile: LearnerProfile, outcome: TaskOutcome) -> LearnerProfile:
    updated = _tracker().record_outcome(profile, outcome)
    store.save_profile(updated)
    return updated


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/learners/{learner_id}/progress")
async def get_progress(learner_id: str) -> dict:
    profile = store.load_profile(validate_learner_id(learner_id))
    return _progress(profile)


@router.delete("/learners/{learner_id}")
async def reset_learner(learner_id: str) -> dict:
    """Forget everything stored about a learner."""
    deleted = store.delete_profile(validate_learner_id(learner_id))
    if not deleted:
        raise HTTPException(status_code=404, detail="Learner not found")
    logger.info("learner_reset", learner_id=learner_id)
    return {"status": "deleted"}


@router.get("/learners/{learner_id}/next-task")
async def next_task(learner_id: str) -> dict:
    """Select the next task and render the generator prompt for it."""
    profile = store.load_profile(validate_learner_id(learner_id))
    challenge = _progression().is_pre_level_up(profile)
    instruction = _selector().build_instruction(profile, challenge=challenge)
    return {
        "instruction": instruction.model_dump(mode="json"),
        "prompt": get_prompt_engine().build_prompt(instruction),
    }


@router.post("/learners/{learner_id}/tasks")
async def generate_task(learner_id: str) -> LearningTask:
    """Select the next task and have the backend generate its content."""
    generator = _require_generator()
    profile = store.load_profile(validate_learner_id(learner_id))
    challenge = _progression().is_pre_level_up(profile)
    instruction = _selector().build_instruction(profile, challenge=challenge)
    try:
        return await generator.generate_task(instruction)
    except GenerationError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/learners/{learner_id}/outcomes")
async def record_outcome(learner_id: str, outcome: TaskOutcome) -> dict:
    """Record an outcome graded outside the tutor."""
    profile = store.load_profile(validate_learner_id(learner_id))
    return _progress(_record(profile, outcome))


@router.post("/learners/{learner_id}/quiz-answers")
async def submit_quiz(learner_id: str, submission: QuizSubmission) -> dict:
    """Grade a quiz locally; wrong answers are explained when a backend is configured."""
    validate_learner_id(learner_id)
    task = submission.task
    try:
        results = grade_quiz(task, submission.answers)
    except GradingError as e:
        raise HTTPException(status_code=422, detail=str(e))
    explanations = {}
    generator = get_generator()
    if generator is not None:
        explanations = await generator.explain_mistakes(task, submission.answers)
    outcome = TaskOutcome(
        task_type=task.type,
        results=results,
        words=task.words,
        new_words=submission.new_words,
        mistakes=mistakes_from_quiz(task, submission.answers),
    )
    # Load after the backend call so concurrent writes are kept
    profile = store.load_profile(learner_id)
    return {
        "results": results,
        "explanations": explanations,
        "progress": _progress(_record(profile, outcome)),
    }


@router.post("/learners/{learner_id}/interactive-answers")
async def submit_interactive(learner_id: str, submission: InteractiveSubmission) -> dict:
    generator = _require_generator()
    validate_learner_id(learner_id)
    task = submission.task
    if not is_interactive(task.type):
        raise HTTPException(status_code=422, detail=f"'{task.type.value}' is a quiz task")
    evaluation: TaskEvaluation = await generator.evaluate_answer(task, submission.user_input)
    profile = store.load_profile(learner_id)
    outcome = TaskOutcome(
        task_type=task.type,
        results=[evaluation.is_correct],
        words=task.words,
        new_words=submission.new_words,
        mistakes=[evaluation.mistake] if evaluation.mistake else [],
    )
    return {
        "evaluation": evaluation.model_dump(mode="json"),
        "progress": _progress(_record(profile, outcome)),
    }


@router.post("/learners/{learner_id}/feedback")
async def add_feedback(learner_id: str, request: FeedbackRequest) -> dict:
    profile = store.load_profile(validate_learner_id(learner_id))
    updated = _tracker().add_feedback(profile, request.text)
    store.save_profile(updated)
    return {"feedback_history": updated.feedback_history}


@router.post("/learners/{learner_id}/help")
async def request_help(learner_id: str, request: HelpRequest) -> dict:
    """Answer a help request and steer the next task towards it."""
    validate_learner_id(learner_id)
    answer = None
    generator = get_generator()
    if generator is not None:
        level = store.load_profile(learner_id).effective_level
        answer = await generator.answer_help(request.query, level)
    profile = store.load_profile(learner_id)
    updated = _tracker().record_help_request(profile, request.query)
    store.save_profile(updated)
    return {"answer": answer, "feedback_history": updated.feedback_history}


@router.put("/learners/{learner_id}/preferences")
async def set_preferences(learner_id: str, request: PreferencesRequest) -> dict:
    profile = store.load_profile(validate_learner_id(learner_id))
    updated = MasteryTracker.set_preferences(profile, request.preferences)
    store.save_profile(updated)
    return {"global_preferences": updated.global_preferences}


@router.post("/learners/{learner_id}/placement")
async def submit_placement(learner_id: str, request: PlacementRequest) -> dict:
    """Set the starting level of a learner who has none yet."""
    profile = store.load_profile(validate_learner_id(learner_id))
    if profile.level is not None:
        raise HTTPException(status_code=409, detail="Learner is already placed; reset to redo placement")
    level = determine_level(request.answers)
    updated = profile.model_copy(update={"level": level})
    store.save_profile(updated)
    return {"level": level.value, "label": level.label}


@router.post("/learners/{learner_id}/level-up")
async def submit_level_up(learner_id: str, request: LevelUpRequest) -> LevelUpResult:
    profile = store.load_profile(validate_learner_id(learner_id))
    progression = _progression()
    if not progression.can_attempt_level_up(profile):
        raise HTTPException(status_code=409, detail="Level-up test is not unlocked")
    try:
        updated, result = progression.apply_level_up_result(profile, request.score)
    except LevelUpUnavailableError as e:
        raise HTTPException(status_code=409, detail=str(e))
    store.save_profile(updated)
    return result


@router.get("/placement-test")
async def placement_test() -> list[AssessmentQuestion]:
    generator = _require_generator()
    try:
        return await generator.generate_placement_test()
    except GenerationError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/learners/{learner_id}/level-up-test")
async def level_up_test(learner_id: str) -> list[AssessmentQuestion]:
    profile = store.load_profile(validate_learner_id(learner_id))
    if not _progression().can_attempt_level_up(profile):
        raise HTTPException(status_code=409, detail="Level-up test is not unlocked")
    generator = _require_generator()
    try:
        return await generator.generate_level_up_test(profile.level)
    except GenerationError as e:
        raise HTTPException(status_code=502, detail=str(e))
