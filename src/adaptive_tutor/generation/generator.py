"""LLM-backed task generation and evaluation of free-text answers."""

import asyncio
import json
import re

import structlog
from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError

from adaptive_tutor.errors import GenerationError
from adaptive_tutor.models.learner import CEFRLevel
from adaptive_tutor.models.task import LearningTask, TaskEvaluation, TaskInstruction
from adaptive_tutor.progress.levels import LEVEL_UP_TEST_QUESTIONS
from adaptive_tutor.progress.placement import PLACEMENT_DISTRIBUTION, PLACEMENT_TEST_QUESTIONS
from adaptive_tutor.selection.prompt_engine import get_prompt_engine

logger = structlog.get_logger()

_FENCE_RE = re.compile(r"^```(\w*)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)

UNSUPPORTED_TYPE_FEEDBACK = "Неверный тип задания для оценки."
EVALUATION_FAILED_FEEDBACK = "Не удалось оценить ваш ответ. Пожалуйста, попробуйте еще раз."
EXPLANATION_FAILED = "Не удалось получить объяснение."
HELP_FAILED = "К сожалению, не удалось получить ответ. Попробуйте еще раз."

EXPLANATION_PROMPT = (
    'An English learner was asked: "{question}". Correct answer: "{correct_answer}". '
    'They answered: "{user_answer}". Provide a 1-2 sentence explanation in simple Russian '
    "why their answer is wrong."
)

HELP_PROMPT = """\
You are a friendly and supportive AI English tutor. A learner at the {level} level has a \
question or a request for their next lesson.
Learner's request: "{query}"
Provide a helpful and concise answer in simple Russian. You can explain a grammar rule, define \
a word, or confirm that their next task will be about their request. The answer should be \
encouraging.
"""

ASSESSMENT_PROMPT = """\
Create a {count}-question English proficiency test.
{scope}

For each question, provide a clear question, 4 multiple-choice options and the correct answer.
Return a JSON object {{ "questions": [...] }} where each item has this exact structure:
{{ "question": "string", "options": ["string", "string", "string", "string"], \
"correctAnswer": "string", "level": "A1|A2|B1|B2|C1" }}
"""


class AssessmentQuestion(BaseModel):
    question: str
    options: list[str]
    correct_answer: str
    level: CEFRLevel


def parse_json_response(text: str) -> dict:
    """Parse a JSON object from model output, tolerating markdown fences."""
    stripped = text.strip()
    match = _FENCE_RE.match(stripped)
    if match and match.group(2):
        stripped = match.group(2).strip()
    return json.loads(stripped)


class TaskGenerator:
    """Thin adapter over the chat-completions API.

    Args:
        api_key: OpenAI API key.
        model: Model used for task and test generation.
        evaluation_model: Model used for grading, explanations and help answers.
            Defaults to ``model``.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        evaluation_model: str | None = None,
    ):
        self.client = AsyncOpenAI(api_key=api_key)
        self.model = model
        self.evaluation_model = evaluation_model or model
        self._prompts = get_prompt_engine()

    async def _complete_json(
        self, prompt: str, temperature: float, model: str | None = None
    ) -> dict:
        response = await self.client.chat.completions.create(
            model=model or self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            response_format={"type": "json_object"},
        )
        return parse_json_response(response.choices[0].message.content or "")

    async def _complete_text(self, prompt: str, temperature: float) -> str:
        response = await self.client.chat.completions.create(
            model=self.evaluation_model,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
        )
        text = (response.choices[0].message.content or "").strip()
        if not text:
            raise ValueError("Empty completion")
        return text

    async def generate_task(self, instruction: TaskInstruction) -> LearningTask:
        """Generate task content for an instruction.

        Raises:
            GenerationError: The backend failed or returned an unusable task.
        """
        prompt = self._prompts.build_prompt(instruction)
        try:
            data = await self._complete_json(prompt, temperature=1.0)
            task = LearningTask.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error("task_generation_invalid", task_type=instruction.task_type.value, error=str(e))
            raise GenerationError("Generated task is missing required fields") from e
        except Exception as e:
            logger.exception("task_generation_failed", task_type=instruction.task_type.value)
            raise GenerationError("Failed to generate a new learning task") from e

        if task.type != instruction.task_type:
            logger.warning(
                "task_type_mismatch",
                requested=instruction.task_type.value,
                received=task.type.value,
            )
        if task.level is None:
            task.level = instruction.level
        logger.info("task_generated", task_type=task.type.value, level=task.level.value)
        return task

    async def evaluate_answer(self, task: LearningTask, user_input: str) -> TaskEvaluation:
        """Evaluate a free-text answer to an interactive task.

        Never raises: failures degrade to an incorrect evaluation.
        """
        prompt = self._prompts.build_evaluation_prompt(task, user_input)
        if prompt is None:
            return TaskEvaluation(is_correct=False, feedback=UNSUPPORTED_TYPE_FEEDBACK)

        try:
            data = await self._complete_json(prompt, temperature=0.3, model=self.evaluation_model)
            evaluation = TaskEvaluation.model_validate(data)
        except Exception:
            logger.exception("answer_evaluation_failed", task_type=task.type.value)
            return TaskEvaluation(is_correct=False, feedback=EVALUATION_FAILED_FEEDBACK)

        logger.info("answer_evaluated", task_type=task.type.value, is_correct=evaluation.is_correct)
        return evaluation

    async def explain_answer(self, question: str, correct_answer: str, user_answer: str) -> str:
        """Explain in Russian why a quiz answer is wrong. Never raises."""
        prompt = EXPLANATION_PROMPT.format(
            question=question, correct_answer=correct_answer, user_answer=user_answer
        )
        try:
            return await self._complete_text(prompt, temperature=0.3)
        except Exception:
            logger.exception("explanation_failed")
            return EXPLANATION_FAILED

    async def explain_mistakes(
        self, task: LearningTask, answers: dict[int, str]
    ) -> dict[int, str]:
        """Explanations for every answered but wrong question, keyed by index.

        Unanswered questions get no explanation.
        """
        wrong = [
            (index, question)
            for index, question in enumerate(task.questions)
            if answers.get(index) and answers[index] != question.correct_answer
        ]
        texts = await asyncio.gather(*(
            self.explain_answer(question.question, question.correct_answer, answers[index])
            for index, question in wrong
        ))
        return {index: text for (index, _), text in zip(wrong, texts)}

    async def answer_help(self, query: str, level: CEFRLevel) -> str:
        """Answer a learner's help request in Russian. Never raises."""
        prompt = HELP_PROMPT.format(level=level.label, query=query.strip())
        try:
            answer = await self._complete_text(prompt, temperature=0.7)
        except Exception:
            logger.exception("help_answer_failed")
            return HELP_FAILED
        logger.info("help_answered", level=level.value)
        return answer

    async def generate_placement_test(self) -> list[AssessmentQuestion]:
        distribution = "\n".join(
            f"- {count} questions for {level.value} level"
            for level, count in PLACEMENT_DISTRIBUTION.items()
        )
        scope = (
            "The test must accurately determine the learner's CEFR level, with this "
            f"distribution:\n{distribution}\nDo not include C1 or C2 questions."
        )
        return await self._generate_assessment(PLACEMENT_TEST_QUESTIONS, scope, temperature=0.7)

    async def generate_level_up_test(self, level: CEFRLevel) -> list[AssessmentQuestion]:
        scope = (
            f"The learner is at {level.label} and wants to prove mastery before advancing. "
            f"The questions must be difficult, cover grammar, vocabulary and reading, and "
            f"all have level \"{level.value}\"."
        )
        return await self._generate_assessment(LEVEL_UP_TEST_QUESTIONS, scope, temperature=0.8)

    async def _generate_assessment(
        self, count: int, scope: str, temperature: float
    ) -> list[AssessmentQuestion]:
        prompt = ASSESSMENT_PROMPT.format(count=count, scope=scope)
        try:
            data = await self._complete_json(prompt, temperature=temperature)
            questions = [
                AssessmentQuestion(
                    question=q["question"],
                    options=q["options"],
                    correct_answer=q["correctAnswer"],
                    level=CEFRLevel.parse(q["level"]),
                )
                for q in data.get("questions", [])
            ]
        except Exception as e:
            logger.exception("assessment_generation_failed", count=count)
            raise GenerationError("Could not generate the test") from e

        if len(questions) < count:
            logger.error("assessment_too_short", expected=count, received=len(questions))
            raise GenerationError(f"Expected {count} questions, received {len(questions)}")
        return questions[:count]
