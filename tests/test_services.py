"""
DashboardService 테스트 (사람 키 교체, 프로젝트 요약)
"""

from datetime import date

import pytest

from teamboard.errors import RecordNotFound
from teamboard.local_store import LocalRecordStore
from teamboard.services import DashboardService


def normalized_name(member) -> str:
    return member.name.strip().lower()


@pytest.fixture
def store(tmp_path):
    store = LocalRecordStore(tmp_path / "local.json")
    p1 = store.add_project({"name": "검색 개편", "year": 2025})
    p2 = store.add_project({"name": "결제 시스템", "year": 2025})
    scores = {"progress": 80, "contribution": 8, "collaboration": 7, "leadership": 6, "skill": 9}
    store.add_member({"project_id": p1.id, "name": "Kim", **scores})
    store.add_member({"project_id": p2.id, "name": "kim ", **scores})
    return store


class TestCustomPersonKey:

    def test_default_key_keeps_spellings_apart(self, store) -> None:
        svc = DashboardService(store)
        assert len(svc.evaluation()) == 2
        assert svc.evaluation_stats().total_members == 2

    def test_evaluation_stats_follow_the_key(self, store) -> None:
        svc = DashboardService(store, key=normalized_name)
        ranked = svc.evaluation()
        stats = svc.evaluation_stats()

        assert [r.total_score for r in ranked] == [73.5]
        assert stats.total_members == 1
        assert stats.avg_score == ranked[0].total_score

    def test_member_detail_collects_every_record_of_the_person(self, store) -> None:
        svc = DashboardService(store, key=normalized_name)
        detail = svc.member_detail("Kim")
        assert len(detail.records) == 2
        assert detail.profile.projects == ["검색 개편", "결제 시스템"]
        assert len(svc.member_detail("kim").records) == 2

    def test_member_detail_unknown(self, store) -> None:
        with pytest.raises(RecordNotFound):
            DashboardService(store, key=normalized_name).member_detail("park")


class TestProjectSummary:

    def test_lists_milestone_progress(self, tmp_path) -> None:
        store = LocalRecordStore(tmp_path / "local.json")
        p = store.add_project({"name": "x"})
        store.add_milestone({"project_id": p.id, "name": "2차", "year": 2026,
                             "monthly_progress": {"2": 90}})
        store.add_milestone({"project_id": p.id, "name": "1차", "year": 2025,
                             "monthly_progress": {"1": 40, "2": 60, "3": 0}})

        summary = DashboardService(store).project_summary(p.id, today=date(2025, 2, 10))

        assert summary.milestone_progress == 75
        assert [(m.name, m.current_progress, m.average_progress) for m in summary.milestones] == [
            ("1차", 60, 50),
            ("2차", 90, 90),
        ]
