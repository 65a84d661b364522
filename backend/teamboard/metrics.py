from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Optional

from .models import Member, Milestone
from .defaults import member_scores
from .utils import round_int, to_date_obj


def normalize_monthly_progress(raw: Optional[dict]) -> dict[str, int]:
    """
    월별 진척도 정규화
      - 키: 1~12 (int/str 모두 허용) -> "1".."12"
      - 값: 0~100 으로 clamp
    """
    out: dict[str, int] = {}
    for key, value in (raw or {}).items():
        month = int(key)
        if not 1 <= month <= 12:
            raise ValueError(f"month out of range: {key}")
        if value is None:
            continue
        out[str(month)] = min(100, max(0, int(value)))
    return out


def milestone_progress_for_month(milestone: Milestone, month: int) -> int:
    progress = milestone.monthly_progress or {}
    value = progress.get(str(month), progress.get(month))
    return value or 0


def milestone_average_progress(milestone: Milestone) -> int:
    """0보다 큰 달만 평균"""
    values = [v for v in (milestone.monthly_progress or {}).values() if v and v > 0]
    if not values:
        return 0
    return round_int(sum(values) / len(values))


def project_progress(members: Iterable[Member], project_id: str) -> int:
    values = [member_scores(m).progress for m in members if m.project_id == project_id]
    if not values:
        return 0
    return round_int(sum(values) / len(values))


def project_milestone_progress(milestones: Iterable[Milestone], project_id: str,
                               month: Optional[int] = None) -> Optional[int]:
    if month is None:
        month = date.today().month
    own = [m for m in milestones if m.project_id == project_id]
    if not own:
        return None
    total = sum(milestone_progress_for_month(m, month) for m in own)
    return round_int(total / len(own))


def days_remaining(deadline: Any, today: Optional[date] = None) -> Optional[int]:
    """
    마감일까지 남은 일수 (날짜 단위)
      0  => 오늘 마감
      음수 => 기한 초과
    """
    deadline_date = to_date_obj(deadline)
    if deadline_date is None:
        return None
    today = today or date.today()
    return (deadline_date - today).days
