"""
공용 픽스처 / 기록 생성 헬퍼
"""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from teamboard.db import select_backend
from teamboard.main import app
from teamboard.models import Project, Member, Milestone

OWNER_EMAIL = "owner@example.com"


def make_project(pid: str, name: str = None, **kwargs) -> Project:
    return Project(id=pid, name=name or f"프로젝트-{pid}", **kwargs)


def make_member(mid: str, project_id: str, name: str, **kwargs) -> Member:
    kwargs.setdefault("band", "A")
    return Member(id=mid, project_id=project_id, name=name, **kwargs)


def make_milestone(mid: str, project_id: str, monthly_progress: dict, **kwargs) -> Milestone:
    return Milestone(id=mid, project_id=project_id, name=f"마일스톤-{mid}",
                     monthly_progress=monthly_progress, **kwargs)


@pytest.fixture
def sample_projects() -> list[Project]:
    return [
        make_project("p1", "검색 개편", year=2025, weight=8, status="completed"),
        make_project("p2", "결제 시스템", deadline=datetime(2025, 6, 30).date(), status="in-progress"),
        make_project("p3", "사내 위키", year=2026, weight=2, status="planning"),
    ]


@pytest.fixture
def sample_members() -> list[Member]:
    return [
        make_member("m1", "p1", "김철수", band="A", role="PM", progress=80, contribution=8,
                    collaboration=7, leadership=6, skill=9),
        make_member("m2", "p2", "김철수", band="A", role="개발", progress=60, contribution=6,
                    collaboration=7, leadership=6, skill=9),
        make_member("m3", "p1", "이영희", band="B", role="디자인", progress=100, contribution=10,
                    collaboration=9, leadership=8, skill=8),
        make_member("m4", "p3", "박민수", band="B", progress=40, contribution=4),
    ]


@pytest.fixture
def local_client(tmp_path):
    """local 백엔드 (인증 없음)"""
    app.state.provider = select_backend("local", local_path=str(tmp_path / "local.json"))
    with TestClient(app) as client:
        yield client
    app.state.provider = None


@pytest.fixture
def sql_provider(tmp_path, monkeypatch):
    monkeypatch.setenv("ALLOWED_EMAIL", OWNER_EMAIL)
    monkeypatch.delenv("ALLOWED_USER_ID", raising=False)
    return select_backend(
        "sql",
        database_url=f"sqlite:///{tmp_path / 'teamboard.db'}",
        local_path=str(tmp_path / "local.json"),
    )


@pytest.fixture
def sql_client(sql_provider):
    """sql 백엔드 + 허용 사용자 헤더"""
    app.state.provider = sql_provider
    with TestClient(app, headers={"X-User-Email": OWNER_EMAIL}) as client:
        yield client
    app.state.provider = None
