from datetime import datetime, date
from typing import Optional

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON


BANDS = ("A", "B")


# =========================
# Project
# =========================
class Project(SQLModel, table=True):
    id: Optional[str] = Field(default=None, primary_key=True)
    name: str
    description: Optional[str] = None
    deadline: Optional[date] = None
    status: str = "planning"

    # year/weight 는 "없음"과 값이 구분되어야 하므로 None 기본값 유지
    year: Optional[int] = None
    weight: Optional[int] = None

    created_at: Optional[datetime] = None


# =========================
# Member (프로젝트 참여 기록, 사람 단위가 아님)
# =========================
class Member(SQLModel, table=True):
    id: Optional[str] = Field(default=None, primary_key=True)
    # FK 제약 없음: 삭제된 프로젝트를 가리키는 기록도 허용
    project_id: Optional[str] = Field(default=None, index=True)

    name: str = Field(index=True)
    band: str = "A"
    role: Optional[str] = None

    progress: Optional[int] = None
    contribution: Optional[int] = None
    collaboration: Optional[int] = None
    leadership: Optional[int] = None
    skill: Optional[int] = None

    notes: Optional[str] = None


# =========================
# Milestone
# =========================
class Milestone(SQLModel, table=True):
    id: Optional[str] = Field(default=None, primary_key=True)
    project_id: Optional[str] = Field(default=None, index=True)

    name: str
    description: Optional[str] = None
    year: Optional[int] = None

    # {"1": 30, "2": 55, ...}  (JSON 키는 문자열)
    monthly_progress: dict = Field(default_factory=dict, sa_column=Column(JSON))

    created_at: Optional[datetime] = None
