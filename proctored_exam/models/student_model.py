from typing import List, Literal

from pydantic import BaseModel, Field


class Student(BaseModel):
    """본인 확인을 통과한 응시자."""
    name: str = "Student"
    email: str = Field(..., min_length=1)
    exam_id: str = Field(..., min_length=1)
    camera_status: Literal["checking", "enabled", "disabled"] = "checking"


class ExamConfig(BaseModel):
    """랜딩/안내 화면에 내려주는 시험 메타데이터."""
    title: str
    duration_minutes: int = Field(..., ge=1)
    total_questions: int = Field(..., ge=1)
    languages: List[str] = Field(default_factory=list)

    @property
    def duration_seconds(self) -> int:
        return self.duration_minutes * 60
