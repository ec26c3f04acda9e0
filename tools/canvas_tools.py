"""
Canvas Tools

Function calling tools over a connected Canvas LMS: upcoming work, course
materials, assignment details, page content and quizzes. Each handler receives a
CanvasClient bound to the selected integration.
"""

import logging
from typing import Any, Dict, Optional

from config import PAGE_PREVIEW_CHARS
from clients import CanvasClient, has_error
from tools.base import build_specs, error_result
from utils import strip_html, truncate

logger = logging.getLogger(__name__)

INTEGRATION_TYPE = "canvas"


# ============================================================================
# TOOL DEFINITIONS
# ============================================================================

TOOL_DEFINITIONS = [
    {
        "name": "list_upcoming_assignments",
        "description": (
            "Lists all upcoming assignments, quizzes, and exams from Canvas. Shows due dates, "
            "course names, and point values. Use this when a student wants to see what's coming "
            "up or needs help planning their study schedule."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "limit": {
                    "type": "integer",
                    "description": "Maximum number of items to return (default 20)",
                },
            },
        },
    },
    {
        "name": "get_course_materials",
        "description": (
            "Retrieves course materials (syllabus, modules, pages, files) from Canvas for a "
            "specific course. Use this to gather context about what the student has learned and "
            "what resources are available to help them with assignments or exam prep."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "course_id": {
                    "type": "integer",
                    "description": "The Canvas course ID to fetch materials from",
                },
                "include_syllabus": {
                    "type": "boolean",
                    "description": "Whether to include the course syllabus (default true)",
                },
            },
            "required": ["course_id"],
        },
    },
    {
        "name": "get_assignment_details",
        "description": (
            "Gets detailed information about a specific assignment or exam, including "
            "description, requirements, rubric, and submission status. Use this when a student "
            "selects an assignment they need help with."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "course_id": {"type": "integer", "description": "The Canvas course ID"},
                "assignment_id": {"type": "integer", "description": "The Canvas assignment ID"},
                "include_submission": {
                    "type": "boolean",
                    "description": "Whether to include the student's current submission status (default true)",
                },
            },
            "required": ["course_id", "assignment_id"],
        },
    },
    {
        "name": "get_page_content",
        "description": (
            "Retrieves the full content of a specific Canvas page. Use this to access detailed "
            "lecture notes, readings, or study materials that can help answer the student's questions."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "course_id": {"type": "integer", "description": "The Canvas course ID"},
                "page_url": {
                    "type": "string",
                    "description": "The page URL slug (e.g., 'introduction-to-thermodynamics')",
                },
            },
            "required": ["course_id", "page_url"],
        },
    },
    {
        "name": "get_course_quizzes",
        "description": (
            "Lists the quizzes and exams in a Canvas course, or returns one quiz's details when "
            "quiz_id is given (instructions, time limit, attempts, question count). Use this when "
            "a student is preparing for a quiz or exam."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "course_id": {"type": "integer", "description": "The Canvas course ID"},
                "quiz_id": {"type": "integer", "description": "A specific quiz ID (optional)"},
            },
            "required": ["course_id"],
        },
    },
]


# ============================================================================
# HANDLERS
# ============================================================================

async def list_upcoming_assignments(client: CanvasClient, limit: Optional[int] = 20) -> Dict[str, Any]:
    """
    List upcoming Canvas assignments across all active courses.

    Returns:
        Dictionary with:
            - success (bool)
            - message (str): Human-readable summary
            - assignments (list): id, name, course, course_id, due_date, points, url
    """
    limit = int(limit or 20)
    logger.info(f"📅 Listing up to {limit} upcoming assignments")

    assignments = await client.get_upcoming_assignments(limit=limit)
    if has_error(assignments):
        return error_result(assignments["error"])

    if not assignments:
        return {
            "success": True,
            "message": "No upcoming assignments found. You're all caught up! 🎉",
            "assignments": [],
        }

    return {
        "success": True,
        "message": f"Found {len(assignments)} upcoming assignment(s)",
        "assignments": [
            {
                "id": a["id"],
                "name": a["name"],
                "course": a["course_name"],
                "course_id": a["course_id"],
                "due_date": a["due_at"],
                "points": a["points_possible"],
                "url": a["html_url"],
            }
            for a in assignments
        ],
    }


async def get_course_materials(
    client: CanvasClient,
    course_id: Any,
    include_syllabus: Optional[bool] = True,
) -> Dict[str, Any]:
    """Modules, page previews, file count and (optionally) the syllabus of a course."""
    if course_id is None:
        return error_result("course_id is required")

    logger.info(f"📚 Fetching course materials for course {course_id}")

    materials = await client.get_course_materials(course_id)
    if has_error(materials):
        return error_result(materials["error"])

    result: Dict[str, Any] = {
        "success": True,
        "course_id": course_id,
        "modules": [
            {
                "id": module.get("id"),
                "name": module.get("name"),
                "items": [
                    {"title": item.get("title"), "type": item.get("type"), "url": item.get("html_url")}
                    for item in module.get("items") or []
                ],
            }
            for module in materials["modules"]
        ],
        "pages": [
            {
                "url": page.get("url"),
                "title": page.get("title"),
                "body": truncate(strip_html(page.get("body")), PAGE_PREVIEW_CHARS),
            }
            for page in materials["pages"]
        ],
        "files_count": len(materials["files"]),
    }

    if include_syllabus is not False:
        syllabus = await client.get_course_syllabus(course_id)
        if not has_error(syllabus):
            result["syllabus"] = truncate(strip_html(syllabus.get("syllabus")))
            result["course_name"] = syllabus.get("course_name")

    return result


async def get_assignment_details(
    client: CanvasClient,
    course_id: Any,
    assignment_id: Any,
    include_submission: Optional[bool] = True,
) -> Dict[str, Any]:
    """Assignment description, rubric and grading info, plus the student's submission state."""
    if course_id is None or assignment_id is None:
        return error_result("course_id and assignment_id are required")

    logger.info(f"📝 Fetching assignment {assignment_id} in course {course_id}")

    assignment = await client.get_assignment_details(course_id, assignment_id)
    if has_error(assignment):
        return error_result(assignment["error"])

    result: Dict[str, Any] = {
        "success": True,
        "assignment": {
            "id": assignment.get("id"),
            "name": assignment.get("name"),
            "description": truncate(strip_html(assignment.get("description"))),
            "due_at": assignment.get("due_at"),
            "points_possible": assignment.get("points_possible"),
            "submission_types": assignment.get("submission_types"),
            "allowed_attempts": assignment.get("allowed_attempts"),
            "rubric": assignment.get("rubric"),
            "grading_type": assignment.get("grading_type"),
            "course_id": course_id,
        },
    }

    if include_submission is not False:
        submission = await client.get_submission(course_id, assignment_id)
        if not has_error(submission):
            result["submission"] = {
                "submitted_at": submission.get("submitted_at"),
                "score": submission.get("score"),
                "grade": submission.get("grade"),
                "attempt": submission.get("attempt"),
                "workflow_state": submission.get("workflow_state"),
            }

    return result


async def get_page_content(client: CanvasClient, course_id: Any, page_url: Optional[str]) -> Dict[str, Any]:
    if course_id is None or not page_url:
        return error_result("course_id and page_url are required")

    logger.info(f"📄 Fetching page '{page_url}' in course {course_id}")

    page = await client.get_page_content(course_id, page_url)
    if has_error(page):
        return error_result(page["error"])

    return {
        "success": True,
        "page": {
            "title": page.get("title"),
            "body": truncate(strip_html(page.get("body"))),
            "url": page.get("url"),
            "created_at": page.get("created_at"),
            "updated_at": page.get("updated_at"),
        },
    }


def _quiz_summary(quiz: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": quiz.get("id"),
        "title": quiz.get("title"),
        "quiz_type": quiz.get("quiz_type"),
        "due_date": quiz.get("due_at"),
        "points": quiz.get("points_possible"),
        "time_limit_min": quiz.get("time_limit"),
        "allowed_attempts": quiz.get("allowed_attempts"),
        "question_count": quiz.get("question_count"),
        "url": quiz.get("html_url"),
    }


async def get_course_quizzes(client: CanvasClient, course_id: Any, quiz_id: Any = None) -> Dict[str, Any]:
    """List a course's quizzes, or one quiz with its instructions when quiz_id is set."""
    if course_id is None:
        return error_result("course_id is required")

    if quiz_id is not None:
        logger.info(f"📝 Fetching quiz {quiz_id} in course {course_id}")
        quiz = await client.get_quiz_details(course_id, quiz_id)
        if has_error(quiz):
            return error_result(quiz["error"])
        return {
            "success": True,
            "quiz": {
                **_quiz_summary(quiz),
                "description": truncate(strip_html(quiz.get("description"))),
            },
        }

    logger.info(f"📝 Listing quizzes in course {course_id}")
    quizzes = await client.get_course_quizzes(course_id)
    if has_error(quizzes):
        return error_result(quizzes["error"])

    return {
        "success": True,
        "message": f"Found {len(quizzes)} quiz(zes)",
        "quizzes": [_quiz_summary(q) for q in quizzes],
    }


HANDLERS = {
    "list_upcoming_assignments": list_upcoming_assignments,
    "get_course_materials": get_course_materials,
    "get_assignment_details": get_assignment_details,
    "get_page_content": get_page_content,
    "get_course_quizzes": get_course_quizzes,
}

TOOL_SPECS = build_specs(TOOL_DEFINITIONS, HANDLERS, INTEGRATION_TYPE)
