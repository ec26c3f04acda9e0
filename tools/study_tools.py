"""
Study Tools

Built-in tools that run locally and are always offered to the model,
whatever integrations are connected. They return structured scaffolds the
model then tailors to the student.
"""

import logging
from typing import Any, Dict, Optional

from tools.base import build_specs, error_result

logger = logging.getLogger(__name__)

DELIVERABLE_TYPES = ["essay", "report", "slides", "code", "study-plan", "other"]
MATERIAL_LEVELS = ["beginner", "intermediate", "advanced"]
MATERIAL_FORMATS = ["flashcards", "study-guide", "summary-map"]


# ============================================================================
# TOOL DEFINITIONS
# ============================================================================

TOOL_DEFINITIONS = [
    {
        "name": "assignment_starter",
        "description": "Create a starter plan with outline, microtasks, and Socratic prompts for an assignment.",
        "parameters": {
            "type": "object",
            "properties": {
                "title": {"type": "string", "description": "Short name for the assignment"},
                "instructions": {"type": "string", "description": "Raw instructions/prompt from class"},
                "deliverable_type": {"type": "string", "enum": DELIVERABLE_TYPES},
            },
            "required": ["title", "instructions"],
        },
    },
    {
        "name": "material_generator",
        "description": "Produce tailored study material for a topic with self-questioning prompts.",
        "parameters": {
            "type": "object",
            "properties": {
                "topic": {"type": "string"},
                "level": {"type": "string", "enum": MATERIAL_LEVELS},
                "format": {"type": "string", "enum": MATERIAL_FORMATS},
            },
            "required": ["topic"],
        },
    },
]


def _check_choice(name: str, value: Optional[str], choices, default: str):
    """Return (value, None) or (None, error_result) for an enum argument."""
    if value is None:
        return default, None
    if value not in choices:
        return None, error_result(f"Invalid {name} '{value}'. Expected one of: {', '.join(choices)}")
    return value, None


# ============================================================================
# HANDLERS
# ============================================================================

async def assignment_starter(
    title: Optional[str],
    instructions: Optional[str],
    deliverable_type: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build a starter plan for an assignment.

    Args:
        title: Short name for the assignment
        instructions: Raw instructions/prompt from class
        deliverable_type: essay, report, slides, code, study-plan or other (default essay)

    Returns:
        Dictionary with outline, microtasks (with time estimates),
        socratic_prompts and a self-review checklist
    """
    if not isinstance(title, str) or not isinstance(instructions, str):
        return error_result("title and instructions are required strings")

    deliverable_type, err = _check_choice("deliverable_type", deliverable_type, DELIVERABLE_TYPES, "essay")
    if err:
        return err

    logger.info(f"🧭 Building starter plan for '{title}' ({deliverable_type})")

    return {
        "success": True,
        "title": title,
        "deliverable_type": deliverable_type,
        "outline": [
            "Clarify requirements & rubric",
            "Brain dump key ideas from memory (no notes)",
            "Research 3 credible sources; capture quotes",
            "Draft sections with thesis + topic sentences",
            "Self-review using rubric; fix gaps",
            "Polish, citations, submit",
        ],
        "microtasks": [
            {"step": 1, "task": "List grading criteria & constraints", "time_est_min": 5},
            {"step": 2, "task": "Write a 5-line thesis + 3 claims", "time_est_min": 10},
            {"step": 3, "task": "Find 3 sources; 2 quotes each", "time_est_min": 20},
        ],
        "socratic_prompts": [
            "Why is this step necessary?",
            "What assumption am I making here?",
            "How will I test that my claim is true?",
            "What would falsify my approach?",
        ],
        "checklist": ["Thesis present", "Claims supported", "Counterpoint addressed", "Rubric satisfied"],
    }


async def material_generator(
    topic: Optional[str],
    level: Optional[str] = None,
    format: Optional[str] = None,
) -> Dict[str, Any]:
    """Flashcards, or a sectioned study guide / summary map, for a topic."""
    if not isinstance(topic, str) or not topic:
        return error_result("topic is required")

    level, err = _check_choice("level", level, MATERIAL_LEVELS, "beginner")
    if err:
        return err
    format, err = _check_choice("format", format, MATERIAL_FORMATS, "flashcards")
    if err:
        return err

    logger.info(f"🗂️  Generating {format} on '{topic}' ({level})")

    if format == "flashcards":
        return {
            "success": True,
            "type": "flashcards",
            "level": level,
            "cards": [
                {"q": f"{topic}: define in one sentence", "a": "…"},
                {"q": f"Why is {topic} important?", "a": "…"},
                {"q": f"{topic}: common misconception?", "a": "…"},
            ],
            "self_questions": [
                f"Can you explain {topic} to a 10-year-old?",
                "What assumption could break your understanding?",
            ],
        }

    return {
        "success": True,
        "type": format,
        "level": level,
        "sections": [
            {"heading": f"{topic}: core ideas", "bullets": ["…", "…"]},
            {"heading": "Connections", "bullets": ["…", "…"]},
            {"heading": "Applications", "bullets": ["…", "…"]},
        ],
    }


HANDLERS = {
    "assignment_starter": assignment_starter,
    "material_generator": material_generator,
}

TOOL_SPECS = build_specs(TOOL_DEFINITIONS, HANDLERS, integration_type=None)
