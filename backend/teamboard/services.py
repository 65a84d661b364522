"""
DashboardService: 저장소 스냅샷 -> 순수 집계 함수

화면/API는 이 서비스만 호출한다. 전역 상태 없이 저장소를 주입받는다.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from .models import BANDS, Project, Member, Milestone
from .store import RecordStore, SqlRecordStore, Snapshot
from .local_store import LocalRecordStore
from .aggregator import (
    BAND_MOST_FREQUENT,
    PersonKey,
    consolidate,
    consolidated_contributors,
    evaluate,
    person_key,
    top_contributors,
    TOP_CONTRIBUTORS_LIMIT,
)
from .defaults import effective_band, effective_weight, member_scores, project_display_name
from .errors import RecordNotFound
from .metrics import (
    days_remaining,
    milestone_average_progress,
    milestone_progress_for_month,
    project_milestone_progress,
    project_progress,
)
from .schemas import (
    BandStats,
    ConsolidatedContributor,
    ConsolidatedPerson,
    Contributor,
    EvaluationStats,
    MemberDetail,
    MembershipRecord,
    MigrationResult,
    MilestoneProgress,
    OverallStats,
    ProjectSummary,
)
from .stats import band_stats, evaluation_stats, overall_stats
from .yearfilter import projects_for_year, scope_to_year

logger = logging.getLogger(__name__)


class DashboardService:
    def __init__(self, store: RecordStore, band_policy: str = BAND_MOST_FREQUENT,
                 key: PersonKey = person_key):
        self.store = store
        self.band_policy = band_policy
        self.key = key

    def snapshot(self) -> Snapshot:
        return self.store.snapshot()

    # -----------------------
    # Projects / members / milestones
    # -----------------------
    def projects(self, year: Optional[int] = None) -> list[Project]:
        projects = self.store.list_projects()
        if year is None:
            return projects
        return projects_for_year(projects, year)

    def members(self, band: str = "all", year: Optional[int] = None) -> list[Member]:
        snap = self.snapshot()
        _, members = scope_to_year(snap.projects, snap.members, year)
        if band != "all":
            members = [m for m in members if effective_band(m) == band]
        return members

    def members_by_project_and_band(self, project_id: str, band: str = "all") -> list[Member]:
        """프로젝트 구성원 (A 밴드 먼저)"""
        members = [m for m in self.store.list_members() if m.project_id == project_id]
        if band != "all":
            members = [m for m in members if effective_band(m) == band]
        return sorted(members, key=lambda m: 0 if effective_band(m) == "A" else 1)

    def milestones_for_project(self, project_id: str, today: Optional[date] = None) -> list[Milestone]:
        """연도 오름차순 (연도 없으면 올해)"""
        current_year = (today or date.today()).year
        milestones = [m for m in self.store.list_milestones() if m.project_id == project_id]
        return sorted(milestones, key=lambda m: m.year if m.year is not None else current_year)

    def project_summary(self, project_id: str, today: Optional[date] = None) -> ProjectSummary:
        project = self.store.get_project(project_id)
        if project is None:
            raise RecordNotFound("Project", project_id)

        today = today or date.today()
        snap = self.snapshot()
        own = [m for m in snap.members if m.project_id == project_id]
        return ProjectSummary(
            project_id=project_id,
            weight=effective_weight(project),
            progress=project_progress(snap.members, project_id),
            milestone_progress=project_milestone_progress(snap.milestones, project_id, today.month),
            days_remaining=days_remaining(project.deadline, today),
            band_a_count=sum(1 for m in own if effective_band(m) == "A"),
            band_b_count=sum(1 for m in own if effective_band(m) == "B"),
            milestones=[
                MilestoneProgress(
                    milestone_id=ms.id,
                    name=ms.name,
                    year=ms.year,
                    current_progress=milestone_progress_for_month(ms, today.month),
                    average_progress=milestone_average_progress(ms),
                )
                for ms in self.milestones_for_project(project_id, today)
            ],
        )

    # -----------------------
    # Dashboard
    # -----------------------
    def overall_stats(self, year: Optional[int] = None) -> OverallStats:
        snap = self.snapshot()
        return overall_stats(snap.projects, snap.members, year)

    def band_stats(self, band: str, year: Optional[int] = None) -> BandStats:
        snap = self.snapshot()
        return band_stats(snap.projects, snap.members, band, year)

    def all_band_stats(self, year: Optional[int] = None) -> dict[str, BandStats]:
        snap = self.snapshot()
        return {b: band_stats(snap.projects, snap.members, b, year) for b in BANDS}

    def top_contributors(self, limit: int = TOP_CONTRIBUTORS_LIMIT, band: str = "all",
                         year: Optional[int] = None) -> list[Contributor]:
        snap = self.snapshot()
        _, members = scope_to_year(snap.projects, snap.members, year)
        return top_contributors(members, snap.lookup(), limit=limit, band=band)

    def consolidated_contributors(self, band: str = "all",
                                  year: Optional[int] = None) -> list[ConsolidatedContributor]:
        snap = self.snapshot()
        _, members = scope_to_year(snap.projects, snap.members, year)
        return consolidated_contributors(members, snap.lookup(), band=band,
                                         key=self.key, band_policy=self.band_policy)

    # -----------------------
    # Roster / evaluation
    # -----------------------
    def roster(self, band: str = "all", year: Optional[int] = None) -> list[ConsolidatedPerson]:
        snap = self.snapshot()
        _, members = scope_to_year(snap.projects, snap.members, year)
        return consolidate(members, snap.lookup(), band=band, key=self.key, band_policy=self.band_policy)

    def evaluation(self, band: str = "all", year: Optional[int] = None) -> list[ConsolidatedPerson]:
        snap = self.snapshot()
        _, members = scope_to_year(snap.projects, snap.members, year)
        return evaluate(members, snap.lookup(), band=band, key=self.key, band_policy=self.band_policy)

    def evaluation_stats(self, year: Optional[int] = None) -> EvaluationStats:
        snap = self.snapshot()
        return evaluation_stats(snap.projects, snap.members, year,
                                band_policy=self.band_policy, key=self.key)

    def member_detail(self, name: str) -> MemberDetail:
        snap = self.snapshot()
        lookup = snap.lookup()
        # 표시 이름 또는 사람 키 값으로 찾는다
        keys = {self.key(m) for m in snap.members if m.name == name} or {name}
        records = [m for m in snap.members if self.key(m) in keys]
        if not records:
            raise RecordNotFound("Member", name)

        profile = consolidate(records, lookup, key=self.key, band_policy=self.band_policy)[0]
        rows = []
        for m in records:
            project = lookup(m.project_id)
            scores = member_scores(m)
            rows.append(MembershipRecord(
                member_id=m.id,
                project_id=m.project_id,
                project_name=project_display_name(project),
                project_weight=effective_weight(project),
                role=m.role,
                progress=scores.progress,
                contribution=scores.contribution,
                collaboration=scores.collaboration,
                leadership=scores.leadership,
                skill=scores.skill,
            ))
        return MemberDetail(profile=profile, records=rows)


def migrate_local_to_sql(local: LocalRecordStore, sql: SqlRecordStore) -> MigrationResult:
    """로컬 JSON 기록을 SQL 저장소로 복사 (id 유지, 이미 있으면 건너뜀)"""
    snap = local.snapshot()
    if not (snap.projects or snap.members or snap.milestones):
        logger.info("No local records to migrate")
        return MigrationResult()

    copied = sql.import_snapshot(snap)
    logger.info(
        "Migrated local records: %d projects, %d members, %d milestones",
        copied["projects"], copied["members"], copied["milestones"],
    )
    return MigrationResult(**copied)
