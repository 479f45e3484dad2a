"""Enrollment API endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from coursemarket.core.middleware import set_user_context
from coursemarket.curriculum.dependencies import (
    CurriculumServiceDep,
    handle_curriculum_error,
)
from coursemarket.curriculum.service import CourseNotFoundError

from .dependencies import EnrollmentServiceDep, handle_enrollment_error
from .schemas import EnrollmentListResponse, EnrollmentResponse, EnrollRequest
from .service import EnrollmentError, EnrollmentNotFoundError


router = APIRouter(prefix="/enrollments", tags=["enrollments"])


@router.post(
    "",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def enroll_in_course(
    data: EnrollRequest,
    enrollment_service: EnrollmentServiceDep,
    curriculum_service: CurriculumServiceDep,
) -> EnrollmentResponse:
    """Enroll a user in a course."""
    set_user_context(data.user_id)

    course = await curriculum_service.get_course(data.course_id)
    if course is None:
        raise handle_curriculum_error(CourseNotFoundError())

    try:
        enrollment = await enrollment_service.create(
            user_id=data.user_id,
            course_id=data.course_id,
            payment_id=data.payment_id,
        )
    except EnrollmentError as e:
        raise handle_enrollment_error(e) from e

    return EnrollmentResponse.from_entity(enrollment)


@router.get("/user/{user_id}", response_model=EnrollmentListResponse)
async def list_user_enrollments(
    user_id: UUID,
    enrollment_service: EnrollmentServiceDep,
) -> EnrollmentListResponse:
    """List a user's enrollments."""
    set_user_context(user_id)
    enrollments = await enrollment_service.list_for_user(user_id)
    return EnrollmentListResponse(
        items=[EnrollmentResponse.from_entity(e) for e in enrollments],
        total=len(enrollments),
    )


@router.get("/{user_id}/{course_id}", response_model=EnrollmentResponse)
async def get_enrollment(
    user_id: UUID,
    course_id: UUID,
    enrollment_service: EnrollmentServiceDep,
) -> EnrollmentResponse:
    """Get a single enrollment."""
    set_user_context(user_id)
    enrollment = await enrollment_service.find_one(user_id, course_id)
    if enrollment is None:
        raise handle_enrollment_error(EnrollmentNotFoundError())
    return EnrollmentResponse.from_entity(enrollment)
