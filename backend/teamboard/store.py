"""
Record Store 계약 + SQL 구현

- 모든 저장소는 RecordStore Protocol을 따른다.
- 집계는 항상 snapshot()으로 받은 불변 스냅샷 위에서 수행한다.
- 프로젝트 삭제 시 구성원/마일스톤 연쇄 삭제는 delete_project() 한 곳에서만 처리한다.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Protocol

from sqlmodel import Session, select

from .models import Project, Member, Milestone
from .errors import RecordNotFound
from .aggregator import ProjectLookup, lookup_from

logger = logging.getLogger(__name__)

PROJECT_FIELDS = {"name", "description", "deadline", "status", "year", "weight"}
MEMBER_FIELDS = {
    "project_id", "name", "band", "role",
    "progress", "contribution", "collaboration", "leadership", "skill", "notes",
}
MILESTONE_FIELDS = {"name", "description", "year", "monthly_progress"}

# None으로 지울 수 없는 필드
REQUIRED_FIELDS = {"name", "status", "band", "monthly_progress", "project_id"}


def new_id() -> str:
    """생성 시각 순으로 정렬되는 문자열 id"""
    return datetime.now().strftime("%Y%m%d%H%M%S%f") + uuid.uuid4().hex[:6]


def clean_updates(updates: dict[str, Any], allowed: set[str]) -> dict[str, Any]:
    out = {}
    for k, v in updates.items():
        if k not in allowed:
            continue
        if v is None and k in REQUIRED_FIELDS:
            continue
        out[k] = v
    return out


@dataclass(frozen=True)
class Snapshot:
    projects: tuple[Project, ...] = ()
    members: tuple[Member, ...] = ()
    milestones: tuple[Milestone, ...] = ()

    def lookup(self) -> ProjectLookup:
        return lookup_from(self.projects)


class RecordStore(Protocol):
    backend: str

    def list_projects(self) -> list[Project]: ...
    def list_members(self) -> list[Member]: ...
    def list_milestones(self) -> list[Milestone]: ...

    def get_project(self, project_id: str) -> Optional[Project]: ...
    def get_member(self, member_id: str) -> Optional[Member]: ...
    def get_milestone(self, milestone_id: str) -> Optional[Milestone]: ...

    def add_project(self, data: dict[str, Any]) -> Project: ...
    def update_project(self, project_id: str, updates: dict[str, Any]) -> Project: ...
    def delete_project(self, project_id: str) -> tuple[int, int]: ...

    def add_member(self, data: dict[str, Any]) -> Member: ...
    def update_member(self, member_id: str, updates: dict[str, Any]) -> Member: ...
    def delete_member(self, member_id: str) -> None: ...

    def add_milestone(self, data: dict[str, Any]) -> Milestone: ...
    def update_milestone(self, milestone_id: str, updates: dict[str, Any]) -> Milestone: ...
    def delete_milestone(self, milestone_id: str) -> None: ...

    def snapshot(self) -> Snapshot: ...


# =========================
# SQL (SQLModel) 저장소
# =========================
class SqlRecordStore:
    backend = "sql"

    def __init__(self, session: Session):
        self.session = session

    # ---- reads
    def list_projects(self) -> list[Project]:
        return list(self.session.exec(select(Project).order_by(Project.id)).all())

    def list_members(self) -> list[Member]:
        return list(self.session.exec(select(Member).order_by(Member.id)).all())

    def list_milestones(self) -> list[Milestone]:
        return list(self.session.exec(select(Milestone).order_by(Milestone.id)).all())

    def get_project(self, project_id: str) -> Optional[Project]:
        return self.session.get(Project, project_id)

    def get_member(self, member_id: str) -> Optional[Member]:
        return self.session.get(Member, member_id)

    def get_milestone(self, milestone_id: str) -> Optional[Milestone]:
        return self.session.get(Milestone, milestone_id)

    def snapshot(self) -> Snapshot:
        return Snapshot(
            projects=tuple(self.list_projects()),
            members=tuple(self.list_members()),
            milestones=tuple(self.list_milestones()),
        )

    # ---- helpers
    def _save(self, row):
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return row

    def _patch(self, model, kind: str, record_id: str, updates: dict[str, Any], allowed: set[str]):
        row = self.session.get(model, record_id)
        if not row:
            raise RecordNotFound(kind, record_id)
        for k, v in clean_updates(updates, allowed).items():
            setattr(row, k, v)
        self._save(row)
        logger.info("%s %s updated", kind, record_id)
        return row

    def _remove(self, model, kind: str, record_id: str) -> None:
        row = self.session.get(model, record_id)
        if not row:
            raise RecordNotFound(kind, record_id)
        self.session.delete(row)
        self.session.commit()
        logger.info("%s %s deleted", kind, record_id)

    # ---- projects
    def add_project(self, data: dict[str, Any]) -> Project:
        project = Project(
            **clean_updates(data, PROJECT_FIELDS),
            id=data.get("id") or new_id(),
            created_at=data.get("created_at") or datetime.now(),
        )
        self._save(project)
        logger.info("Project %s created (%s)", project.id, project.name)
        return project

    def update_project(self, project_id: str, updates: dict[str, Any]) -> Project:
        return self._patch(Project, "Project", project_id, updates, PROJECT_FIELDS)

    def delete_project(self, project_id: str) -> tuple[int, int]:
        project = self.session.get(Project, project_id)
        if not project:
            raise RecordNotFound("Project", project_id)

        members = self.session.exec(select(Member).where(Member.project_id == project_id)).all()
        for m in members:
            self.session.delete(m)

        miles = self.session.exec(select(Milestone).where(Milestone.project_id == project_id)).all()
        for m in miles:
            self.session.delete(m)

        self.session.delete(project)
        self.session.commit()
        logger.info(
            "Project %s deleted with %d members, %d milestones",
            project_id, len(members), len(miles),
        )
        return len(members), len(miles)

    # ---- members
    def add_member(self, data: dict[str, Any]) -> Member:
        fields = clean_updates(data, MEMBER_FIELDS)
        fields.setdefault("band", "A")
        member = Member(**fields, id=data.get("id") or new_id())
        self._save(member)
        logger.info("Member %s (%s) added to project %s", member.id, member.name, member.project_id)
        return member

    def update_member(self, member_id: str, updates: dict[str, Any]) -> Member:
        return self._patch(Member, "Member", member_id, updates, MEMBER_FIELDS)

    def delete_member(self, member_id: str) -> None:
        self._remove(Member, "Member", member_id)

    # ---- milestones
    def add_milestone(self, data: dict[str, Any]) -> Milestone:
        fields = clean_updates(data, MILESTONE_FIELDS | {"project_id"})
        milestone = Milestone(
            **fields,
            id=data.get("id") or new_id(),
            created_at=data.get("created_at") or datetime.now(),
        )
        self._save(milestone)
        logger.info("Milestone %s created for project %s", milestone.id, milestone.project_id)
        return milestone

    def update_milestone(self, milestone_id: str, updates: dict[str, Any]) -> Milestone:
        return self._patch(Milestone, "Milestone", milestone_id, updates, MILESTONE_FIELDS)

    def delete_milestone(self, milestone_id: str) -> None:
        self._remove(Milestone, "Milestone", milestone_id)

    # ---- migration
    def import_snapshot(self, snap: Snapshot) -> dict[str, int]:
        """id를 유지한 채 그대로 복사. 이미 있는 id는 건너뜀. 한 번의 commit."""
        copied = {"projects": 0, "members": 0, "milestones": 0}
        for key, model, rows in (
            ("projects", Project, snap.projects),
            ("members", Member, snap.members),
            ("milestones", Milestone, snap.milestones),
        ):
            for row in rows:
                if self.session.get(model, row.id) is not None:
                    continue
                self.session.add(model(**row.model_dump()))
                copied[key] += 1
        self.session.commit()
        return copied
