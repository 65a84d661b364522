"""
연도 필터 테스트
"""

from datetime import date, datetime

from teamboard.yearfilter import members_for_year, project_matches_year, projects_for_year, scope_to_year

from conftest import make_member, make_project


class TestProjectsForYear:
    """year > deadline > created_at > 전체 포함 우선순위"""

    def test_year_field_wins_over_deadline(self) -> None:
        p = make_project("p1", year=2026, deadline=date(2025, 12, 31))
        assert project_matches_year(p, 2026) is True
        assert project_matches_year(p, 2025) is False

    def test_deadline_year_used_when_no_year(self) -> None:
        p = make_project("p1", deadline=date(2025, 12, 31))
        assert project_matches_year(p, 2025) is True
        assert project_matches_year(p, 2026) is False

    def test_created_at_used_last(self) -> None:
        p = make_project("p1", created_at=datetime(2024, 3, 1, 9, 30))
        assert projects_for_year([p], 2024) == [p]
        assert projects_for_year([p], 2025) == []

    def test_no_date_information_matches_every_year(self) -> None:
        p = make_project("p1")
        for year in (1999, 2025, 2026):
            assert project_matches_year(p, year) is True

    def test_deadline_checked_before_created_at(self) -> None:
        p = make_project("p1", deadline=date(2025, 5, 1), created_at=datetime(2024, 1, 1))
        assert project_matches_year(p, 2024) is False


class TestMembersForYear:

    def test_only_members_of_year_projects(self, sample_projects, sample_members) -> None:
        members = members_for_year(sample_members, sample_projects, 2025)
        assert [m.id for m in members] == ["m1", "m2", "m3"]

    def test_dangling_project_reference_excluded(self, sample_projects) -> None:
        orphan = make_member("x", "deleted-project", "유령")
        assert members_for_year([orphan], sample_projects, 2025) == []
        assert members_for_year([orphan], sample_projects, 2026) == []

    def test_scope_without_year_returns_everything(self, sample_projects, sample_members) -> None:
        projects, members = scope_to_year(sample_projects, sample_members, None)
        assert len(projects) == 3
        assert len(members) == 4
