"""
기본값 규칙 (한 곳에서만 적용)

모든 집계 경로는 가중치/밴드/점수 기본값을 이 모듈을 통해서만 읽는다.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .models import Project, Member

DEFAULT_WEIGHT = 5
DEFAULT_BAND = "A"
DEFAULT_SOFT_SCORE = 5
UNKNOWN_PROJECT_NAME = "알 수 없음"


@dataclass(frozen=True)
class MemberScores:
    progress: int
    contribution: int
    collaboration: int
    leadership: int
    skill: int


def effective_weight(project: Optional[Project]) -> int:
    # 없는 프로젝트, weight 미지정, 0 이하 모두 기본값
    if project is None or not project.weight or project.weight <= 0:
        return DEFAULT_WEIGHT
    return project.weight


def project_display_name(project: Optional[Project]) -> str:
    return project.name if project is not None else UNKNOWN_PROJECT_NAME


def effective_band(member: Member) -> str:
    return member.band or DEFAULT_BAND


def _or_default(value: Any, default: int) -> int:
    return default if value is None else value


def member_scores(member: Member) -> MemberScores:
    return MemberScores(
        progress=_or_default(member.progress, 0),
        contribution=_or_default(member.contribution, 0),
        collaboration=_or_default(member.collaboration, DEFAULT_SOFT_SCORE),
        leadership=_or_default(member.leadership, DEFAULT_SOFT_SCORE),
        skill=_or_default(member.skill, DEFAULT_SOFT_SCORE),
    )
