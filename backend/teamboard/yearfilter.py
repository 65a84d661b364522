from __future__ import annotations

from typing import Iterable, Optional

from .models import Project, Member


def project_matches_year(project: Project, year: int) -> bool:
    # 우선순위: year > deadline > created_at > (정보 없음이면 항상 포함)
    if project.year is not None:
        return project.year == year
    if project.deadline is not None:
        return project.deadline.year == year
    if project.created_at is not None:
        return project.created_at.year == year
    return True


def projects_for_year(projects: Iterable[Project], year: int) -> list[Project]:
    return [p for p in projects if project_matches_year(p, year)]


def members_for_year(members: Iterable[Member], projects: Iterable[Project], year: int) -> list[Member]:
    """해당 연도 프로젝트에 속한 구성원만. 끊어진 project_id는 항상 제외."""
    project_ids = {p.id for p in projects_for_year(projects, year)}
    return [m for m in members if m.project_id in project_ids]


def scope_to_year(projects: Iterable[Project], members: Iterable[Member],
                  year: Optional[int]) -> tuple[list[Project], list[Member]]:
    """year가 None이면 전체, 아니면 연도 필터 적용"""
    projects = list(projects)
    members = list(members)
    if year is None:
        return projects, members
    return projects_for_year(projects, year), members_for_year(members, projects, year)
