from __future__ import annotations

from typing import Iterable, Optional

from .models import Project, Member
from .defaults import effective_band, member_scores
from .aggregator import evaluate, lookup_from, person_key, PersonKey, BAND_MOST_FREQUENT
from .schemas import BandStats, OverallStats, EvaluationStats
from .utils import round_half_up, round_int
from .yearfilter import scope_to_year


def band_stats(projects: Iterable[Project], members: Iterable[Member], band: str,
               year: Optional[int] = None) -> BandStats:
    _, scoped = scope_to_year(projects, members, year)
    if band != "all":
        scoped = [m for m in scoped if effective_band(m) == band]

    count = len(scoped)
    if count == 0:
        return BandStats()

    scores = [member_scores(m) for m in scoped]
    return BandStats(
        count=count,
        avg_progress=round_int(sum(s.progress for s in scores) / count),
        avg_contribution=round_half_up(sum(s.contribution for s in scores) / count, 1),
    )


def overall_stats(projects: Iterable[Project], members: Iterable[Member],
                  year: Optional[int] = None) -> OverallStats:
    scoped_projects, scoped_members = scope_to_year(projects, members, year)
    return OverallStats(
        total_projects=len(scoped_projects),
        completed_projects=sum(1 for p in scoped_projects if p.status == "completed"),
        in_progress_projects=sum(1 for p in scoped_projects if p.status == "in-progress"),
        total_members=len(scoped_members),
    )


def evaluation_stats(projects: Iterable[Project], members: Iterable[Member],
                     year: Optional[int] = None,
                     band_policy: str = BAND_MOST_FREQUENT,
                     key: PersonKey = person_key) -> EvaluationStats:
    projects = list(projects)
    scoped_projects, scoped_members = scope_to_year(projects, members, year)
    ranked = evaluate(scoped_members, lookup_from(projects), band="all",
                      key=key, band_policy=band_policy)

    avg_score = 0.0
    if ranked:
        avg_score = round_half_up(sum(r.total_score for r in ranked) / len(ranked), 1)

    return EvaluationStats(
        total_members=len({key(m) for m in scoped_members}),
        total_projects=len(scoped_projects),
        avg_score=avg_score,
    )
