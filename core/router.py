"""
Mode Router

Maps the study mode the student picked to the context hint that is
prefixed to their message, and builds the assignment hint used when a
Canvas assignment is in focus.

Modes:
- start: Start/Create, steer towards assignment_starter
- study: Study/Learn with Socratic questions and active recall
- question: Question/Dialogue (default)
- material: Material/Resource, steer towards material_generator
- canvas: Canvas/Assignments, begin from the upcoming-work list
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from config import (
    MODE_HINTS,
    DEFAULT_MODE,
    ASSIGNMENT_CONTEXT_TEMPLATE,
    USER_TURN_TEMPLATE,
    format_prompt,
)

logger = logging.getLogger(__name__)

FALLBACK_HINT = "Mode: Question/Dialogue."


# ============================================================================
# MODE TYPES
# ============================================================================

class ModeType(Enum):
    """Study modes the student can choose."""
    START = "start"
    STUDY = "study"
    QUESTION = "question"
    MATERIAL = "material"
    CANVAS = "canvas"


def parse_mode(mode: Any) -> Optional[ModeType]:
    """ModeType for a mode name (case-insensitive), or None if unknown."""
    if isinstance(mode, ModeType):
        return mode
    if not mode:
        return ModeType(DEFAULT_MODE)
    try:
        return ModeType(str(mode).strip().lower())
    except ValueError:
        return None


# ============================================================================
# HINTS
# ============================================================================

def get_mode_hint(mode: Any = None) -> str:
    """
    Context hint for a study mode.

    Unknown modes fall back to a bare Question/Dialogue hint.
    """
    mode_type = parse_mode(mode)
    if mode_type is None:
        logger.warning(f"⚠️  Unknown mode '{mode}', using dialogue hint")
        return FALLBACK_HINT
    return MODE_HINTS[mode_type.value]


def build_assignment_hint(assignment: Dict[str, Any]) -> str:
    """
    Hint for a conversation focused on one Canvas assignment.

    Args:
        assignment: Assignment payload (needs "name"; "course_name" is optional)
    """
    course_name = assignment.get("course_name")
    return format_prompt(
        ASSIGNMENT_CONTEXT_TEMPLATE,
        assignment_name=assignment.get("name") or "this assignment",
        course_suffix=f" in {course_name}" if course_name else "",
    )


def build_user_turn(message: str, hint: Optional[str] = None) -> str:
    """Prefix the student's message with a context hint."""
    if not hint:
        return message
    return format_prompt(USER_TURN_TEMPLATE, hint=hint, message=message)


def get_mode_description(mode: Any) -> str:
    """
    Get a human-readable description of a study mode.
    """
    descriptions = {
        ModeType.START: "Getting started on an assignment",
        ModeType.STUDY: "Studying a topic with guided questions",
        ModeType.QUESTION: "Working through a question together",
        ModeType.MATERIAL: "Generating study material",
        ModeType.CANVAS: "Reviewing your Canvas assignments",
    }
    return descriptions.get(parse_mode(mode), "Talking it through")
