from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from .metrics import normalize_monthly_progress

ProjectStatus = Literal["planning", "in-progress", "completed", "on-hold"]
Band = Literal["A", "B"]
BandFilter = Literal["A", "B", "all"]


# -----------------------
# Requests
# -----------------------
class ProjectCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    deadline: Optional[date] = None
    status: ProjectStatus = "planning"
    year: Optional[int] = None
    weight: Optional[int] = Field(default=None, ge=1, le=10)


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    deadline: Optional[date] = None
    status: Optional[ProjectStatus] = None
    year: Optional[int] = None
    weight: Optional[int] = Field(default=None, ge=1, le=10)


class MemberCreate(BaseModel):
    project_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    band: Band = "A"
    role: Optional[str] = None
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    contribution: Optional[int] = Field(default=None, ge=0, le=10)
    collaboration: Optional[int] = Field(default=None, ge=0, le=10)
    leadership: Optional[int] = Field(default=None, ge=0, le=10)
    skill: Optional[int] = Field(default=None, ge=0, le=10)
    notes: Optional[str] = None


class MemberUpdate(BaseModel):
    project_id: Optional[str] = Field(default=None, min_length=1)
    name: Optional[str] = Field(default=None, min_length=1)
    band: Optional[Band] = None
    role: Optional[str] = None
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    contribution: Optional[int] = Field(default=None, ge=0, le=10)
    collaboration: Optional[int] = Field(default=None, ge=0, le=10)
    leadership: Optional[int] = Field(default=None, ge=0, le=10)
    skill: Optional[int] = Field(default=None, ge=0, le=10)
    notes: Optional[str] = None

    # 참여 기록은 항상 프로젝트에 속해야 한다 (null로 옮길 수 없음)
    @field_validator("project_id")
    @classmethod
    def _project_required(cls, v):
        if v is None:
            raise ValueError("project_id cannot be null")
        return v


class MilestoneCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    year: Optional[int] = None
    monthly_progress: dict[str, Optional[int]] = Field(default_factory=dict)

    @field_validator("monthly_progress")
    @classmethod
    def _clamp_months(cls, v):
        return normalize_monthly_progress(v)


class MilestoneUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    year: Optional[int] = None
    monthly_progress: Optional[dict[str, Optional[int]]] = None

    @field_validator("monthly_progress")
    @classmethod
    def _clamp_months(cls, v):
        if v is None:
            return None
        return normalize_monthly_progress(v)


# -----------------------
# Aggregation results
# -----------------------
class ConsolidatedPerson(BaseModel):
    name: str
    band: str
    projects: list[str]
    roles: list[str]
    avg_progress: int
    avg_contribution: float
    avg_collaboration: float
    avg_leadership: float
    avg_skill: float
    total_score: float
    rank: Optional[int] = None


class Contributor(BaseModel):
    member_id: Optional[str] = None
    project_id: Optional[str] = None
    project_name: str
    name: str
    band: str
    role: Optional[str] = None
    progress: int
    contribution: int
    score: float


class ConsolidatedContributor(BaseModel):
    name: str
    band: str
    projects: list[str]
    score: float


class BandStats(BaseModel):
    count: int = 0
    avg_progress: int = 0
    avg_contribution: float = 0.0


class OverallStats(BaseModel):
    total_projects: int
    completed_projects: int
    in_progress_projects: int
    total_members: int


class EvaluationStats(BaseModel):
    total_members: int
    total_projects: int
    avg_score: float


class MembershipRecord(BaseModel):
    member_id: Optional[str] = None
    project_id: Optional[str] = None
    project_name: str
    project_weight: int
    role: Optional[str] = None
    progress: int
    contribution: int
    collaboration: int
    leadership: int
    skill: int


class MemberDetail(BaseModel):
    profile: ConsolidatedPerson
    records: list[MembershipRecord]


class MilestoneProgress(BaseModel):
    milestone_id: Optional[str] = None
    name: str
    year: Optional[int] = None
    current_progress: int
    average_progress: int


class ProjectSummary(BaseModel):
    project_id: str
    weight: int
    progress: int
    milestone_progress: Optional[int] = None
    days_remaining: Optional[int] = None
    band_a_count: int
    band_b_count: int
    milestones: list[MilestoneProgress] = []


class DeleteResult(BaseModel):
    ok: bool = True
    members: int = 0
    milestones: int = 0


class MigrationResult(BaseModel):
    projects: int = 0
    members: int = 0
    milestones: int = 0
