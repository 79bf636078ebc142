"""Prompt templates for task generation and answer evaluation."""

from adaptive_tutor.models.task import TaskType

BASE_PROMPT = """\
You are an expert AI English tutor. Your goal is to create a single, engaging and \
methodologically sound English learning task of type '{task_type}' for a learner at the \
{level} CEFR level.

Return the result as a single, perfectly-formed JSON object. Your entire response MUST be \
ONLY the JSON object, without any surrounding text or markdown fences. The JSON object MUST \
include "type": "{task_type}" and "level": "{level_code}".
"""

QUIZ_STRUCTURE = (
    '{{ "type": "{task_type}", "title": "string", "level": "{level_code}", '
    '"content": "string", "questions": [{{ "question": "string", '
    '"options": ["string", "string", "string"], "correctAnswer": "string" }}] }}'
)

TASK_STRUCTURES: dict[TaskType, str] = {
    TaskType.FILL_IN_THE_BLANKS: (
        "'content' is a short text using '___' for each gap; 'questions' has one question "
        "per gap with three options.\nStructure: " + QUIZ_STRUCTURE
    ),
    TaskType.VOCABULARY: (
        "'content' is a sentence with '___' where the target word belongs; 'questions' has one "
        "question to fill the blank. List the target words in 'words'.\nStructure: "
        + QUIZ_STRUCTURE
    ),
    TaskType.READING: (
        "'content' is a short text; 'questions' has 1-2 comprehension questions about it.\n"
        "Structure: " + QUIZ_STRUCTURE
    ),
    TaskType.GRAMMAR: (
        "'content' is an incorrect sentence; 'questions' has one question whose options are "
        "corrected versions.\nStructure: " + QUIZ_STRUCTURE
    ),
    TaskType.IMAGE: (
        "'content' is a rich, descriptive prompt for an image generation model describing a "
        "scene with several details; 'questions' has one question about the scene.\n"
        "Structure: " + QUIZ_STRUCTURE
    ),
    TaskType.ROLE_PLAY: (
        "Create a realistic scenario in which the learner needs to achieve a goal.\n"
        'Structure: {{ "type": "role-play", "title": "Role-play: [Scenario Name]", '
        '"level": "{level_code}", "context": "the scenario and the learner\'s role", '
        '"content": "the first line from the other character", '
        '"constraints": "a clear goal for the learner" }}'
    ),
    TaskType.ERROR_CORRECTION: (
        "Provide a single English sentence with one clear grammatical or vocabulary error.\n"
        'Structure: {{ "type": "error-correction", "title": "Find and Fix the Mistake", '
        '"level": "{level_code}", "content": "the sentence with one error", '
        '"context": "optional context for the sentence" }}'
    ),
    TaskType.SENTENCE_CONSTRUCTION: (
        "Give the learner a set of words to form a coherent sentence or question.\n"
        'Structure: {{ "type": "sentence-construction", "title": "Make a Sentence", '
        '"level": "{level_code}", "content": "a short instruction", '
        '"words": ["word", "word"], "constraints": "optional constraints" }}'
    ),
    TaskType.STORY: (
        "Ask for a short, coherent story using all the given words and one grammar rule.\n"
        'Structure: {{ "type": "story", "title": "Creative Story Writing", '
        '"level": "{level_code}", "content": "the writing prompt", '
        '"words": ["word1", "word2", "word3", "word4", "word5"], '
        '"grammarConstraint": "the grammar rule to use" }}'
    ),
    TaskType.EDITING: (
        "Give a short text in Russian and a non-ideal, literal English translation of it.\n"
        'Structure: {{ "type": "editing", "title": "Translation Editing", '
        '"level": "{level_code}", "originalText": "the Russian text", '
        '"content": "the imperfect English translation", '
        '"constraints": "Edit the English translation to make it natural and correct." }}'
    ),
}

EVALUATION_CRITERIA: dict[TaskType, str] = {
    TaskType.ROLE_PLAY: (
        "- Scenario context: \"{context}\"\n"
        "- Other character's first line: \"{content}\"\n"
        "- Learner's goal: \"{constraints}\"\n"
        "- Criteria: Did the learner respond appropriately and work towards the goal? "
        "Is the grammar correct for their level?"
    ),
    TaskType.ERROR_CORRECTION: (
        "- Incorrect sentence to be fixed: \"{content}\"\n"
        "- Criteria: Did the learner identify and fix the error? Is the result a single, "
        "grammatically correct sentence?"
    ),
    TaskType.SENTENCE_CONSTRUCTION: (
        "- Words to use: {words}\n"
        "- Instructions: \"{content}\"\n"
        "- Constraints: \"{constraints}\"\n"
        "- Criteria: Did the learner use all the words to form a sentence that meets the "
        "constraints?"
    ),
    TaskType.STORY: (
        "- Words to use: {words}\n"
        "- Grammar constraint: \"{grammar_constraint}\"\n"
        "- Criteria: Does the story use ALL the given words and the grammar constraint? "
        "Is it coherent and correct for the learner's level?"
    ),
    TaskType.EDITING: (
        "- Original Russian text: \"{original_text}\"\n"
        "- Imperfect translation to edit: \"{content}\"\n"
        "- Criteria: Is the learner's version more natural, idiomatic and correct than the "
        "imperfect one?"
    ),
}

EVALUATION_PROMPT = """\
You are an expert AI English tutor. {learner} was given a task.
Evaluate their response based on the task's specific requirements.
The feedback MUST be in simple, encouraging, clear Russian. It should explain what was good \
and what could be improved.
Return your evaluation as a JSON object with this exact structure:
{{ "isCorrect": boolean, "feedback": "string", "mistake": {{ "topic": "string", "detail": "string" }} | null }}
"isCorrect" is true only if the response is grammatically correct and fully meets all task \
constraints. When it is false, "mistake" names the main grammar or vocabulary topic at fault.

- Task type: {task_type}
- Learner's response: "{user_input}"

Task information:
{criteria}
"""
