"""Tests for PromptEngine - instruction to prompt rendering."""

from adaptive_tutor.models.learner import CEFRLevel
from adaptive_tutor.models.task import LearningTask, TaskInstruction, TaskType
from adaptive_tutor.selection.prompt_engine import PromptEngine, get_prompt_engine


def make_instruction(**kwargs) -> TaskInstruction:
    kwargs.setdefault("task_type", TaskType.READING)
    kwargs.setdefault("level", CEFRLevel.B1)
    return TaskInstruction(**kwargs)


def test_build_prompt_mentions_type_and_level():
    prompt = PromptEngine().build_prompt(make_instruction())
    assert "'reading'" in prompt
    assert "B1 (Intermediate)" in prompt
    assert '"level": "B1"' in prompt


def test_build_prompt_per_task_type():
    """Every task type renders a prompt with its own JSON structure."""
    engine = PromptEngine()
    prompts = {t: engine.build_prompt(make_instruction(task_type=t)) for t in TaskType}
    for task_type, prompt in prompts.items():
        assert f'"type": "{task_type.value}"' in prompt, f"{task_type} missing structure"
    assert len(set(prompts.values())) == len(TaskType)


def test_build_prompt_differs_per_level():
    engine = PromptEngine()
    prompts = {lvl: engine.build_prompt(make_instruction(level=lvl)) for lvl in CEFRLevel}
    assert len(set(prompts.values())) == len(CEFRLevel)


def test_constraints_listed_in_order():
    prompt = PromptEngine().build_prompt(
        make_instruction(constraints=["first rule", "second rule"])
    )
    assert "- first rule\n- second rule" in prompt


def test_evaluation_prompt_for_interactive_task():
    task = LearningTask(
        type=TaskType.SENTENCE_CONSTRUCTION,
        title="Make a Sentence",
        level=CEFRLevel.A2,
        content="Create a question about hobbies.",
        words=["you", "like", "what", "do"],
    )
    prompt = PromptEngine().build_evaluation_prompt(task, "What do you like?")
    assert "you / like / what / do" in prompt
    assert 'Learner\'s response: "What do you like?"' in prompt
    assert "A2 (Elementary)" in prompt


def test_evaluation_prompt_without_task_level():
    task = LearningTask(type=TaskType.EDITING, title="Edit", content="Fix this text.")
    prompt = PromptEngine().build_evaluation_prompt(task, "Fixed text.")
    assert "A learner was given a task." in prompt


def test_evaluation_prompt_none_for_quiz():
    task = LearningTask(type=TaskType.GRAMMAR, title="Grammar", level=CEFRLevel.A1, content="x")
    assert PromptEngine().build_evaluation_prompt(task, "anything") is None


def test_get_prompt_engine_singleton():
    """get_prompt_engine() returns consistent instance"""
    engine1 = get_prompt_engine()
    engine2 = get_prompt_engine()
    assert engine1 is engine2
