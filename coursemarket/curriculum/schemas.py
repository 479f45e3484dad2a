"""Pydantic schemas for curriculum reads."""

from uuid import UUID

from coursemarket.core.schemas import CamelModel

from .models import Chapter, CourseCurriculum, Lecture


class LectureResponse(CamelModel):
    """Lecture as shown in the course player."""

    id: UUID
    title: str
    duration: str | None = None
    duration_seconds: float
    video_url: str | None = None
    is_preview_free: bool = False

    @classmethod
    def from_entity(cls, entity: Lecture) -> "LectureResponse":
        return cls(
            id=entity.id,
            title=entity.title,
            duration=entity.duration,
            duration_seconds=entity.duration_seconds,
            video_url=entity.video_url,
            is_preview_free=entity.is_preview_free,
        )


class ChapterResponse(CamelModel):
    """Chapter with its ordered lectures."""

    id: UUID
    title: str
    lectures: list[LectureResponse]

    @classmethod
    def from_entity(cls, entity: Chapter) -> "ChapterResponse":
        return cls(
            id=entity.id,
            title=entity.title,
            lectures=[LectureResponse.from_entity(lec) for lec in entity.lectures],
        )


class CurriculumResponse(CamelModel):
    """Full course curriculum."""

    course_id: UUID
    title: str
    total_lessons: int
    total_duration: float
    chapters: list[ChapterResponse]

    @classmethod
    def from_entity(cls, entity: CourseCurriculum) -> "CurriculumResponse":
        return cls(
            course_id=entity.course_id,
            title=entity.course.title,
            total_lessons=entity.total_lessons,
            total_duration=entity.total_duration_seconds,
            chapters=[ChapterResponse.from_entity(ch) for ch in entity.chapters],
        )
