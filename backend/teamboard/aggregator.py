"""
사람 단위 가중 통합 집계 (Aggregator)

구성원 기록(프로젝트 참여 1건 = 1기록)을 사람 키로 묶어
프로젝트 가중치를 반영한 평균과 종합점수를 계산한다.

종합점수 = 진척도*0.25 + 기여도*2 + 협업*1.5 + 주도성*1.5 + 실력*2

- 정렬은 점수 내림차순 stable sort (동점이면 먼저 나온 사람이 앞)
- 순위는 index+1 (동점이어도 공동 순위 없음)
- 입력을 변경하지 않는 순수 함수들. 호출자는 스냅샷을 넘긴다.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from .models import BANDS, Project, Member
from .defaults import (
    effective_band,
    effective_weight,
    member_scores,
    project_display_name,
)
from .errors import BandConflictError
from .schemas import ConsolidatedPerson, Contributor, ConsolidatedContributor
from .utils import round_half_up, round_int

ProjectLookup = Callable[[Optional[str]], Optional[Project]]
PersonKey = Callable[[Member], str]

SCORE_WEIGHTS = {
    "progress": 0.25,
    "contribution": 2.0,
    "collaboration": 1.5,
    "leadership": 1.5,
    "skill": 2.0,
}

BAND_FIRST = "first"
BAND_MOST_FREQUENT = "most_frequent"
BAND_STRICT = "strict"
BAND_POLICIES = (BAND_FIRST, BAND_MOST_FREQUENT, BAND_STRICT)

TOP_CONTRIBUTORS_LIMIT = 5


def person_key(member: Member) -> str:
    """기본 사람 식별 키: 이름 완전 일치 (대소문자 구분)"""
    return member.name


def lookup_from(projects: Iterable[Project]) -> ProjectLookup:
    by_id = {p.id: p for p in projects}
    return lambda project_id: by_id.get(project_id)


@dataclass
class _Accumulator:
    name: str
    bands: list[str] = field(default_factory=list)
    projects: list[str] = field(default_factory=list)
    roles: list[str] = field(default_factory=list)
    progress: float = 0.0
    contribution: float = 0.0
    collaboration: float = 0.0
    leadership: float = 0.0
    skill: float = 0.0
    total_weight: int = 0

    def add_project(self, project_name: str) -> None:
        if project_name not in self.projects:
            self.projects.append(project_name)

    def add_role(self, role: Optional[str]) -> None:
        if role and role not in self.roles:
            self.roles.append(role)

    def average(self, attr: str) -> float:
        if self.total_weight <= 0:
            return 0.0
        return getattr(self, attr) / self.total_weight


def resolve_band(person: str, bands: list[str], policy: str = BAND_MOST_FREQUENT) -> str:
    """
    같은 사람의 기록들이 서로 다른 밴드를 가질 때의 결정 규칙

    first         : 처음 나온 기록의 밴드 (입력 순서 의존)
    most_frequent : 가장 많이 나온 밴드, 동수면 A -> B 순서
    strict        : 서로 다르면 BandConflictError
    """
    if policy not in BAND_POLICIES:
        raise ValueError(f"Unknown band policy: {policy!r}")
    if policy == BAND_FIRST:
        return bands[0]

    counts = Counter(bands)
    if policy == BAND_STRICT and len(counts) > 1:
        raise BandConflictError(person, sorted(counts))

    order = {b: i for i, b in enumerate(BANDS)}
    return sorted(counts, key=lambda b: (-counts[b], order.get(b, len(order)), b))[0]


def composite_score(progress: float, contribution: float, collaboration: float,
                    leadership: float, skill: float) -> float:
    total = (
        progress * SCORE_WEIGHTS["progress"]
        + contribution * SCORE_WEIGHTS["contribution"]
        + collaboration * SCORE_WEIGHTS["collaboration"]
        + leadership * SCORE_WEIGHTS["leadership"]
        + skill * SCORE_WEIGHTS["skill"]
    )
    return round_half_up(total, 1)


def _group(members: Iterable[Member], lookup: ProjectLookup, key: PersonKey) -> list[_Accumulator]:
    groups: dict[str, _Accumulator] = {}

    for member in members:
        project = lookup(member.project_id)
        weight = effective_weight(project)
        scores = member_scores(member)

        person = key(member)
        acc = groups.get(person)
        if acc is None:
            acc = groups[person] = _Accumulator(name=member.name)

        acc.bands.append(effective_band(member))
        acc.add_project(project_display_name(project))
        acc.add_role(member.role)

        acc.progress += scores.progress * weight
        acc.contribution += scores.contribution * weight
        acc.collaboration += scores.collaboration * weight
        acc.leadership += scores.leadership * weight
        acc.skill += scores.skill * weight
        acc.total_weight += weight

    return list(groups.values())


def consolidate(members: Iterable[Member], lookup: ProjectLookup, band: str = "all",
                key: PersonKey = person_key,
                band_policy: str = BAND_MOST_FREQUENT) -> list[ConsolidatedPerson]:
    """
    사람 단위 통합 프로필 목록 (점수 내림차순, 순위 없음)

    Args:
        members: 구성원 기록 스냅샷
        lookup: project_id -> Project | None
        band: 'A' | 'B' | 'all' (통합 후 결정된 밴드로 필터)
        key: 사람 식별 키 함수
        band_policy: 밴드 충돌 처리 규칙
    """
    results: list[ConsolidatedPerson] = []

    for acc in _group(members, lookup, key):
        avg_progress = round_int(acc.average("progress"))
        avg_contribution = round_half_up(acc.average("contribution"), 1)
        avg_collaboration = round_half_up(acc.average("collaboration"), 1)
        avg_leadership = round_half_up(acc.average("leadership"), 1)
        avg_skill = round_half_up(acc.average("skill"), 1)

        results.append(ConsolidatedPerson(
            name=acc.name,
            band=resolve_band(acc.name, acc.bands, band_policy),
            projects=list(acc.projects),
            roles=list(acc.roles),
            avg_progress=avg_progress,
            avg_contribution=avg_contribution,
            avg_collaboration=avg_collaboration,
            avg_leadership=avg_leadership,
            avg_skill=avg_skill,
            total_score=composite_score(
                avg_progress, avg_contribution, avg_collaboration, avg_leadership, avg_skill
            ),
        ))

    if band != "all":
        results = [r for r in results if r.band == band]

    return sorted(results, key=lambda r: r.total_score, reverse=True)


def rank(people: list[ConsolidatedPerson]) -> list[ConsolidatedPerson]:
    """정렬된 목록에 1부터 순위 부여 (동점도 연속 순위)"""
    return [p.model_copy(update={"rank": i + 1}) for i, p in enumerate(people)]


def evaluate(members: Iterable[Member], lookup: ProjectLookup, band: str = "all",
             key: PersonKey = person_key,
             band_policy: str = BAND_MOST_FREQUENT) -> list[ConsolidatedPerson]:
    """종합평가: consolidate + 순위"""
    return rank(consolidate(members, lookup, band=band, key=key, band_policy=band_policy))


def record_score(member: Member) -> float:
    scores = member_scores(member)
    return scores.contribution * (scores.progress / 100)


def top_contributors(members: Iterable[Member], lookup: ProjectLookup,
                     limit: int = TOP_CONTRIBUTORS_LIMIT, band: str = "all") -> list[Contributor]:
    """기록 단위 상위 기여자 (사람 통합 없음)"""
    rows: list[Contributor] = []
    for member in members:
        member_band = effective_band(member)
        if band != "all" and member_band != band:
            continue
        scores = member_scores(member)
        rows.append(Contributor(
            member_id=member.id,
            project_id=member.project_id,
            project_name=project_display_name(lookup(member.project_id)),
            name=member.name,
            band=member_band,
            role=member.role,
            progress=scores.progress,
            contribution=scores.contribution,
            score=record_score(member),
        ))

    rows = sorted(rows, key=lambda r: r.score, reverse=True)
    return rows[:limit]


def consolidated_contributors(members: Iterable[Member], lookup: ProjectLookup, band: str = "all",
                              key: PersonKey = person_key,
                              band_policy: str = BAND_MOST_FREQUENT) -> list[ConsolidatedContributor]:
    """
    사람 단위 기여 점수: sum(score * weight) / sum(weight)

    밴드 필터는 통합 전에 기록 단위로 적용한다.
    """
    groups: dict[str, dict] = {}

    for member in members:
        member_band = effective_band(member)
        if band != "all" and member_band != band:
            continue

        project = lookup(member.project_id)
        weight = effective_weight(project)

        person = key(member)
        data = groups.get(person)
        if data is None:
            data = groups[person] = {
                "name": member.name,
                "bands": [],
                "projects": [],
                "weighted_score": 0.0,
                "total_weight": 0,
            }

        data["bands"].append(member_band)
        project_name = project_display_name(project)
        if project_name not in data["projects"]:
            data["projects"].append(project_name)
        data["weighted_score"] += record_score(member) * weight
        data["total_weight"] += weight

    results = [
        ConsolidatedContributor(
            name=data["name"],
            band=resolve_band(data["name"], data["bands"], band_policy),
            projects=data["projects"],
            score=data["weighted_score"] / data["total_weight"] if data["total_weight"] > 0 else 0.0,
        )
        for data in groups.values()
    ]
    return sorted(results, key=lambda r: r.score, reverse=True)
