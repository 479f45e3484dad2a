"""Curriculum API endpoints."""

from uuid import UUID

from fastapi import APIRouter

from .dependencies import CurriculumServiceDep, handle_curriculum_error
from .schemas import CurriculumResponse
from .service import CurriculumError


router = APIRouter(prefix="/courses", tags=["curriculum"])


@router.get("/{course_id}/curriculum", response_model=CurriculumResponse)
async def get_curriculum(
    course_id: UUID,
    curriculum_service: CurriculumServiceDep,
) -> CurriculumResponse:
    """Get a course's chapters and lectures in order."""
    try:
        curriculum = await curriculum_service.get_course_with_lectures(course_id)
    except CurriculumError as e:
        raise handle_curriculum_error(e) from e
    return CurriculumResponse.from_entity(curriculum)
