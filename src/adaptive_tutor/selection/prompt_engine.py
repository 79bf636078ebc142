"""Renders task instructions into generator prompts."""

from functools import lru_cache
from pathlib import Path

import yaml

from adaptive_tutor.models.task import LearningTask, TaskInstruction
from adaptive_tutor.selection.prompts import (
    BASE_PROMPT,
    EVALUATION_CRITERIA,
    EVALUATION_PROMPT,
    TASK_STRUCTURES,
)

PROMPTS_DIR = Path(__file__).parent.parent.parent.parent / "config" / "prompts"


@lru_cache(maxsize=1)
def _load_yaml(filename: str) -> dict:
    path = PROMPTS_DIR / filename
    if not path.exists():
        return {}
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


class PromptEngine:
    """Builds generation and evaluation prompts from tutor state."""

    def build_prompt(self, instruction: TaskInstruction) -> str:
        level = instruction.level
        task_type = instruction.task_type
        parts = [
            BASE_PROMPT.format(
                task_type=task_type.value,
                level=level.label,
                level_code=level.value,
            )
        ]

        # Per-level guidance (levels.yaml)
        levels = _load_yaml("levels.yaml").get("levels", {})
        guidance = levels.get(level.value, {}).get("guidance")
        if guidance:
            parts.append(f"Level guidance:\n{guidance.strip()}")

        if instruction.constraints:
            parts.append(
                "Constraints:\n" + "\n".join(f"- {c}" for c in instruction.constraints)
            )

        parts.append(
            TASK_STRUCTURES[task_type].format(task_type=task_type.value, level_code=level.value)
        )
        parts.append(
            "IMPORTANT: Ensure the generated JSON is valid. Do not add trailing commas. "
            "Respond ONLY with the JSON object."
        )
        return "\n\n".join(p for p in parts if p)

    def build_evaluation_prompt(self, task: LearningTask, user_input: str) -> str | None:
        """Build the evaluation prompt for an interactive task.

        Returns:
            The prompt, or None when the task type is graded locally.
        """
        template = EVALUATION_CRITERIA.get(task.type)
        if template is None:
            return None
        criteria = template.format(
            context=task.context or "",
            content=task.content,
            constraints=task.constraints or "",
            words=" / ".join(task.words),
            grammar_constraint=task.grammar_constraint or "",
            original_text=task.original_text or "",
        )
        learner = f"A learner at the {task.level.label} level" if task.level else "A learner"
        return EVALUATION_PROMPT.format(
            learner=learner,
            task_type=task.type.value,
            user_input=user_input,
            criteria=criteria,
        )


_engine = PromptEngine()


def get_prompt_engine() -> PromptEngine:
    return _engine
