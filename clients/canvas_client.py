"""
Canvas Client - Canvas LMS REST API

Read access to the student's courses, assignments, pages, quizzes and
submissions. All methods return the decoded Canvas payload or
{"error": "..."}.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from config import CANVAS_API_URL
from clients.base import BaseAPIClient, has_error

logger = logging.getLogger(__name__)

CourseId = Union[int, str]


def parse_canvas_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse Canvas ISO-8601 timestamps ("2025-03-01T23:59:00Z")."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class CanvasClient(BaseAPIClient):
    """Canvas LMS client bound to one access token."""

    service_name = "Canvas"

    def __init__(self, credential: Optional[str], base_url: Optional[str] = None, **kwargs):
        super().__init__(credential, base_url or CANVAS_API_URL, **kwargs)

    # ------------------------------------------------------------------ #
    # Courses
    # ------------------------------------------------------------------ #

    async def get_courses(self) -> Any:
        """Active-enrollment courses for the current user."""
        return await self._request(
            "GET",
            "/courses",
            params={"enrollment_state": "active", "include[]": "total_scores"},
        )

    async def get_course_syllabus(self, course_id: CourseId) -> Dict[str, Any]:
        course = await self._request(
            "GET", f"/courses/{course_id}", params={"include[]": "syllabus_body"}
        )
        if has_error(course):
            return course
        return {
            "course_name": course.get("name"),
            "syllabus": course.get("syllabus_body"),
        }

    async def get_course_materials(self, course_id: CourseId) -> Dict[str, Any]:
        """
        Modules (with items), pages and files for a course, fetched concurrently.

        A section that fails comes back as an empty list. Only when all three
        fail is an error returned.
        """
        modules, pages, files = await asyncio.gather(
            self._request("GET", f"/courses/{course_id}/modules", params={"include[]": "items"}),
            self._request("GET", f"/courses/{course_id}/pages"),
            self._request("GET", f"/courses/{course_id}/files", params={"per_page": 50}),
        )

        sections = {"modules": modules, "pages": pages, "files": files}
        if all(has_error(section) for section in sections.values()):
            return {"error": modules["error"]}

        return {
            name: section if isinstance(section, list) else []
            for name, section in sections.items()
        }

    # ------------------------------------------------------------------ #
    # Assignments
    # ------------------------------------------------------------------ #

    async def get_upcoming_assignments(
        self,
        limit: int = 20,
        now: Optional[datetime] = None,
    ) -> Any:
        """
        Assignments due in the future across all active courses.

        Args:
            limit: Maximum number of assignments to return
            now: Reference time (defaults to the current UTC time)

        Returns:
            List of assignment summaries sorted by due date, or an error dict
        """
        courses = await self.get_courses()
        if has_error(courses):
            logger.error(f"❌ Failed to get courses: {courses['error']}")
            return courses
        if not isinstance(courses, list):
            return {"error": "Invalid response from Canvas API"}

        now = now or datetime.now(timezone.utc)

        per_course = await asyncio.gather(*[
            self._request(
                "GET",
                f"/courses/{course['id']}/assignments",
                params={"order_by": "due_at", "per_page": 10},
            )
            for course in courses
        ])

        upcoming: List[Dict[str, Any]] = []
        for course, assignments in zip(courses, per_course):
            if has_error(assignments) or not isinstance(assignments, list):
                logger.warning(f"⚠️  Skipping course {course.get('id')}: no assignments returned")
                continue

            for assignment in assignments:
                due = parse_canvas_datetime(assignment.get("due_at"))
                if due is None or due <= now:
                    continue
                upcoming.append({
                    "id": assignment.get("id"),
                    "name": assignment.get("name"),
                    "course_id": course.get("id"),
                    "course_name": course.get("name"),
                    "due_at": assignment.get("due_at"),
                    "points_possible": assignment.get("points_possible"),
                    "description": assignment.get("description"),
                    "html_url": assignment.get("html_url"),
                    "submission_types": assignment.get("submission_types"),
                    "_due": due,
                })

        upcoming.sort(key=lambda a: a["_due"])
        for assignment in upcoming:
            del assignment["_due"]

        return upcoming[:limit]

    async def get_assignment_details(self, course_id: CourseId, assignment_id: CourseId) -> Any:
        return await self._request("GET", f"/courses/{course_id}/assignments/{assignment_id}")

    async def get_submission(
        self,
        course_id: CourseId,
        assignment_id: CourseId,
        user_id: str = "self",
    ) -> Any:
        return await self._request(
            "GET", f"/courses/{course_id}/assignments/{assignment_id}/submissions/{user_id}"
        )

    # ------------------------------------------------------------------ #
    # Pages & quizzes
    # ------------------------------------------------------------------ #

    async def get_page_content(self, course_id: CourseId, page_url: str) -> Any:
        return await self._request("GET", f"/courses/{course_id}/pages/{page_url}")

    async def get_course_quizzes(self, course_id: CourseId) -> Any:
        return await self._request("GET", f"/courses/{course_id}/quizzes")

    async def get_quiz_details(self, course_id: CourseId, quiz_id: CourseId) -> Any:
        return await self._request("GET", f"/courses/{course_id}/quizzes/{quiz_id}")

    # ------------------------------------------------------------------ #
    # Connection check
    # ------------------------------------------------------------------ #

    async def check_connection(self) -> Dict[str, Any]:
        courses = await self.get_courses()
        if has_error(courses):
            return {"success": False, "error": courses["error"]}
        if not isinstance(courses, list):
            return {"success": False, "error": "Invalid response from Canvas API"}

        return {
            "success": True,
            "message": "Canvas connected successfully",
            "data": {"course_count": len(courses)},
        }
