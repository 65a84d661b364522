"""
로컬 JSON 파일 저장소

브라우저 localStorage 버전과 같은 문서 형태(camelCase 키)를 그대로 쓴다.
  {"projects": [...], "members": [...], "milestones": [...]}

- 값이 없는 선택 필드는 문서에서 아예 빠진다 (없음 vs 0 구분 유지)
- 변경될 때마다 파일 전체를 다시 쓴다
"""
from __future__ import annotations

import json
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from .models import Project, Member, Milestone
from .errors import RecordNotFound
from .metrics import normalize_monthly_progress
from .store import (
    MEMBER_FIELDS,
    MILESTONE_FIELDS,
    PROJECT_FIELDS,
    Snapshot,
    clean_updates,
    new_id,
)
from .utils import sanitize_for_json, to_date_obj, to_datetime_obj

logger = logging.getLogger(__name__)

# python 필드명 -> 문서 키
DOC_KEYS = {
    "project_id": "projectId",
    "monthly_progress": "monthlyProgress",
    "created_at": "createdAt",
}
FIELD_NAMES = {v: k for k, v in DOC_KEYS.items()}


def to_document(row) -> dict[str, Any]:
    data = sanitize_for_json(row.model_dump())
    return {DOC_KEYS.get(k, k): v for k, v in data.items() if v is not None}


def from_document(model, doc: dict[str, Any]):
    fields: dict[str, Any] = {}
    for key, value in doc.items():
        name = FIELD_NAMES.get(key, key)
        if name not in model.model_fields:
            continue
        fields[name] = value

    if "id" in fields and fields["id"] is not None:
        fields["id"] = str(fields["id"])
    if "project_id" in fields and fields["project_id"] is not None:
        fields["project_id"] = str(fields["project_id"])
    if "deadline" in fields:
        fields["deadline"] = to_date_obj(fields["deadline"])
    if "created_at" in fields:
        fields["created_at"] = to_datetime_obj(fields["created_at"])
    if "monthly_progress" in fields:
        fields["monthly_progress"] = normalize_monthly_progress(fields["monthly_progress"])
    if model is Member and not fields.get("band"):
        fields["band"] = "A"
    return model(**fields)


class LocalRecordStore:
    backend = "local"

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self.projects: list[Project] = []
        self.members: list[Member] = []
        self.milestones: list[Milestone] = []
        self.load()

    # ---- file io
    def load(self) -> None:
        if not self.path.exists():
            logger.info("Local store %s not found, starting empty", self.path)
            return
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        with self._lock:
            self.projects[:] = [from_document(Project, d) for d in data.get("projects") or []]
            self.members[:] = [from_document(Member, d) for d in data.get("members") or []]
            self.milestones[:] = [from_document(Milestone, d) for d in data.get("milestones") or []]
        logger.info(
            "Loaded local store %s (%d projects, %d members, %d milestones)",
            self.path, len(self.projects), len(self.members), len(self.milestones),
        )

    def _save_all(self, collections: dict[str, list]) -> None:
        data = {name: [to_document(row) for row in rows] for name, rows in collections.items()}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        tmp.replace(self.path)

    def _commit(self, **changed: list) -> None:
        """
        바뀐 목록을 먼저 파일에 쓰고, 성공했을 때만 메모리에 반영
        (쓰기 실패 시 메모리는 이전 상태 그대로)
        lock을 잡은 상태에서 호출한다.
        """
        current = {
            "projects": self.projects,
            "members": self.members,
            "milestones": self.milestones,
        }
        self._save_all({**current, **changed})
        for name, rows in changed.items():
            current[name][:] = rows

    # ---- reads
    def list_projects(self) -> list[Project]:
        with self._lock:
            return list(self.projects)

    def list_members(self) -> list[Member]:
        with self._lock:
            return list(self.members)

    def list_milestones(self) -> list[Milestone]:
        with self._lock:
            return list(self.milestones)

    @staticmethod
    def _find(rows: list, record_id: str) -> Optional[int]:
        for i, row in enumerate(rows):
            if row.id == record_id:
                return i
        return None

    def get_project(self, project_id: str) -> Optional[Project]:
        with self._lock:
            i = self._find(self.projects, project_id)
            return None if i is None else self.projects[i]

    def get_member(self, member_id: str) -> Optional[Member]:
        with self._lock:
            i = self._find(self.members, member_id)
            return None if i is None else self.members[i]

    def get_milestone(self, milestone_id: str) -> Optional[Milestone]:
        with self._lock:
            i = self._find(self.milestones, milestone_id)
            return None if i is None else self.milestones[i]

    def snapshot(self) -> Snapshot:
        # 기록은 수정 시 교체되므로 튜플 복사만으로 불변 스냅샷이 된다
        with self._lock:
            return Snapshot(
                projects=tuple(self.projects),
                members=tuple(self.members),
                milestones=tuple(self.milestones),
            )

    # ---- helpers
    def _replace(self, collection: str, model, kind: str, record_id: str,
                 updates: dict[str, Any], allowed: set[str]):
        with self._lock:
            rows = list(getattr(self, collection))
            i = self._find(rows, record_id)
            if i is None:
                raise RecordNotFound(kind, record_id)
            merged = {**rows[i].model_dump(), **clean_updates(updates, allowed)}
            row = rows[i] = model(**merged)
            self._commit(**{collection: rows})
        logger.info("%s %s updated", kind, record_id)
        return row

    def _remove(self, collection: str, kind: str, record_id: str) -> None:
        with self._lock:
            rows = list(getattr(self, collection))
            i = self._find(rows, record_id)
            if i is None:
                raise RecordNotFound(kind, record_id)
            del rows[i]
            self._commit(**{collection: rows})
        logger.info("%s %s deleted", kind, record_id)

    def _append(self, collection: str, row) -> None:
        with self._lock:
            self._commit(**{collection: [*getattr(self, collection), row]})

    # ---- projects
    def add_project(self, data: dict[str, Any]) -> Project:
        project = Project(
            **clean_updates(data, PROJECT_FIELDS),
            id=data.get("id") or new_id(),
            created_at=data.get("created_at") or datetime.now(),
        )
        self._append("projects", project)
        logger.info("Project %s created (%s)", project.id, project.name)
        return project

    def update_project(self, project_id: str, updates: dict[str, Any]) -> Project:
        return self._replace("projects", Project, "Project", project_id, updates, PROJECT_FIELDS)

    def delete_project(self, project_id: str) -> tuple[int, int]:
        with self._lock:
            if self._find(self.projects, project_id) is None:
                raise RecordNotFound("Project", project_id)
            projects = [p for p in self.projects if p.id != project_id]
            members = [m for m in self.members if m.project_id != project_id]
            milestones = [m for m in self.milestones if m.project_id != project_id]
            removed = (len(self.members) - len(members), len(self.milestones) - len(milestones))

            # 세 목록을 한 번의 파일 쓰기로 반영
            self._commit(projects=projects, members=members, milestones=milestones)
        logger.info("Project %s deleted with %d members, %d milestones", project_id, *removed)
        return removed

    # ---- members
    def add_member(self, data: dict[str, Any]) -> Member:
        fields = clean_updates(data, MEMBER_FIELDS)
        fields.setdefault("band", "A")
        member = Member(**fields, id=data.get("id") or new_id())
        self._append("members", member)
        logger.info("Member %s (%s) added to project %s", member.id, member.name, member.project_id)
        return member

    def update_member(self, member_id: str, updates: dict[str, Any]) -> Member:
        return self._replace("members", Member, "Member", member_id, updates, MEMBER_FIELDS)

    def delete_member(self, member_id: str) -> None:
        self._remove("members", "Member", member_id)

    # ---- milestones
    def add_milestone(self, data: dict[str, Any]) -> Milestone:
        milestone = Milestone(
            **clean_updates(data, MILESTONE_FIELDS | {"project_id"}),
            id=data.get("id") or new_id(),
            created_at=data.get("created_at") or datetime.now(),
        )
        self._append("milestones", milestone)
        logger.info("Milestone %s created for project %s", milestone.id, milestone.project_id)
        return milestone

    def update_milestone(self, milestone_id: str, updates: dict[str, Any]) -> Milestone:
        return self._replace("milestones", Milestone, "Milestone", milestone_id, updates, MILESTONE_FIELDS)

    def delete_milestone(self, milestone_id: str) -> None:
        self._remove("milestones", "Milestone", milestone_id)
