"""
HTTP API 테스트 (FastAPI TestClient)
"""

from fastapi.testclient import TestClient

from teamboard.main import app


def create_project(client, **body):
    body.setdefault("name", "검색 개편")
    res = client.post("/projects", json=body)
    assert res.status_code == 200, res.text
    return res.json()


def create_member(client, project_id, **body):
    body.setdefault("name", "김철수")
    res = client.post("/members", json={"project_id": project_id, **body})
    assert res.status_code == 200, res.text
    return res.json()


class TestProjectsApi:

    def test_crud_and_cascade(self, local_client) -> None:
        p = create_project(local_client, weight=8, year=2025)
        create_member(local_client, p["id"], progress=80, contribution=8)
        res = local_client.post(f"/projects/{p['id']}/milestones",
                                json={"name": "설계", "monthly_progress": {"1": 120}})
        assert res.status_code == 200
        assert res.json()["monthly_progress"] == {"1": 100}

        res = local_client.patch(f"/projects/{p['id']}", json={"status": "completed"})
        assert res.json()["status"] == "completed"
        assert res.json()["weight"] == 8

        res = local_client.delete(f"/projects/{p['id']}")
        assert res.json() == {"ok": True, "members": 1, "milestones": 1}
        assert local_client.get(f"/projects/{p['id']}").status_code == 404
        assert local_client.get("/members").json() == []

    def test_year_filter(self, local_client) -> None:
        create_project(local_client, name="올해", year=2025)
        create_project(local_client, name="내년", deadline="2026-02-01")
        names = [p["name"] for p in local_client.get("/projects", params={"year": 2026}).json()]
        assert names == ["내년"]

    def test_validation(self, local_client) -> None:
        assert local_client.post("/projects", json={"name": "x", "weight": 0}).status_code == 422
        assert local_client.post("/projects", json={"name": "x", "status": "done"}).status_code == 422
        p = create_project(local_client)
        res = local_client.post("/members", json={"project_id": p["id"], "name": "a", "band": "C"})
        assert res.status_code == 422

    def test_unknown_records(self, local_client) -> None:
        assert local_client.patch("/projects/nope", json={"name": "y"}).status_code == 404
        assert local_client.delete("/members/nope").status_code == 404
        assert local_client.post("/members", json={"project_id": "nope", "name": "a"}).status_code == 404

    def test_member_move_requires_existing_project(self, local_client) -> None:
        p1 = create_project(local_client)
        p2 = create_project(local_client, name="결제 시스템")
        m = create_member(local_client, p1["id"])

        assert local_client.patch(f"/members/{m['id']}", json={"project_id": "nope"}).status_code == 404
        assert local_client.patch(f"/members/{m['id']}", json={"project_id": None}).status_code == 422
        assert local_client.get("/members").json()[0]["project_id"] == p1["id"]

        res = local_client.patch(f"/members/{m['id']}", json={"project_id": p2["id"]})
        assert res.status_code == 200
        assert res.json()["project_id"] == p2["id"]

    def test_summary_lists_milestones(self, local_client) -> None:
        p = create_project(local_client)
        local_client.post(f"/projects/{p['id']}/milestones",
                          json={"name": "설계", "year": 2025, "monthly_progress": {"1": 40, "2": 60}})
        summary = local_client.get(f"/projects/{p['id']}/summary").json()
        assert [(m["name"], m["average_progress"]) for m in summary["milestones"]] == [("설계", 50)]

    def test_summary(self, local_client) -> None:
        p = create_project(local_client, deadline="2099-01-01")
        create_member(local_client, p["id"], progress=40)
        create_member(local_client, p["id"], name="이영희", band="B", progress=60)
        summary = local_client.get(f"/projects/{p['id']}/summary").json()
        assert summary["progress"] == 50
        assert summary["weight"] == 5
        assert summary["milestone_progress"] is None
        assert summary["days_remaining"] > 0
        assert (summary["band_a_count"], summary["band_b_count"]) == (1, 1)

    def test_project_members_band_a_first(self, local_client) -> None:
        p = create_project(local_client)
        create_member(local_client, p["id"], name="B1", band="B")
        create_member(local_client, p["id"], name="A1", band="A")
        names = [m["name"] for m in local_client.get(f"/projects/{p['id']}/members").json()]
        assert names == ["A1", "B1"]
        only_b = local_client.get(f"/projects/{p['id']}/members", params={"band": "B"}).json()
        assert [m["name"] for m in only_b] == ["B1"]


class TestDashboardApi:

    def seed(self, client):
        p1 = create_project(client, name="검색 개편", weight=8, year=2025, status="completed")
        p2 = create_project(client, name="결제 시스템", year=2025, status="in-progress")
        create_member(client, p1["id"], name="김철수", role="PM", progress=80, contribution=8,
                      collaboration=7, leadership=6, skill=9)
        create_member(client, p2["id"], name="김철수", role="개발", progress=60, contribution=6,
                      collaboration=7, leadership=6, skill=9)
        create_member(client, p1["id"], name="이영희", band="B", progress=100, contribution=10,
                      collaboration=9, leadership=8, skill=8)

    def test_evaluation(self, local_client) -> None:
        self.seed(local_client)
        rows = local_client.get("/evaluation", params={"year": 2025}).json()
        assert [(r["name"], r["rank"], r["total_score"]) for r in rows] == [
            ("이영희", 1, 86.5),
            ("김철수", 2, 69.9),
        ]
        band_b = local_client.get("/evaluation", params={"band": "B"}).json()
        assert [r["rank"] for r in band_b] == [1]

    def test_stats(self, local_client) -> None:
        self.seed(local_client)
        stats = local_client.get("/stats", params={"year": 2025}).json()
        assert stats == {"total_projects": 2, "completed_projects": 1,
                         "in_progress_projects": 1, "total_members": 3}
        bands = local_client.get("/stats/bands").json()
        assert bands["A"]["count"] == 2
        assert bands["B"] == {"count": 1, "avg_progress": 100, "avg_contribution": 10.0}
        ev = local_client.get("/evaluation/stats").json()
        assert ev == {"total_members": 2, "total_projects": 2, "avg_score": 78.2}

    def test_contributors_and_roster(self, local_client) -> None:
        self.seed(local_client)
        top = local_client.get("/contributors/top", params={"limit": 1}).json()
        assert [t["name"] for t in top] == ["이영희"]
        consolidated = local_client.get("/contributors/consolidated").json()
        assert [c["name"] for c in consolidated] == ["이영희", "김철수"]
        roster = local_client.get("/roster").json()
        assert all(r["rank"] is None for r in roster)

    def test_top_contributors_rejects_negative_limit(self, local_client) -> None:
        self.seed(local_client)
        assert local_client.get("/contributors/top", params={"limit": -1}).status_code == 422
        assert local_client.get("/contributors/top", params={"limit": 0}).json() == []

    def test_strict_band_policy_reports_conflict(self, local_client, monkeypatch) -> None:
        monkeypatch.setenv("TEAMBOARD_BAND_POLICY", "strict")
        p1 = create_project(local_client)
        p2 = create_project(local_client, name="결제 시스템")
        create_member(local_client, p1["id"], name="김철수", band="A")
        create_member(local_client, p2["id"], name="김철수", band="B")

        assert local_client.get("/evaluation").status_code == 409
        assert local_client.get("/roster").status_code == 409
        assert local_client.get("/members").status_code == 200

    def test_default_band_policy_resolves_conflict(self, local_client) -> None:
        p1 = create_project(local_client)
        p2 = create_project(local_client, name="결제 시스템")
        create_member(local_client, p1["id"], name="김철수", band="B")
        create_member(local_client, p2["id"], name="김철수", band="A")
        assert [r["band"] for r in local_client.get("/evaluation").json()] == ["A"]

    def test_member_detail(self, local_client) -> None:
        self.seed(local_client)
        detail = local_client.get("/roster/김철수").json()
        assert detail["profile"]["projects"] == ["검색 개편", "결제 시스템"]
        assert [r["project_weight"] for r in detail["records"]] == [8, 5]
        assert local_client.get("/roster/없는사람").status_code == 404


class TestSqlBackendApi:

    def test_requires_allowed_identity(self, sql_provider) -> None:
        app.state.provider = sql_provider
        try:
            with TestClient(app) as client:
                assert client.get("/projects").status_code == 401
                res = client.get("/projects", headers={"X-User-Email": "intruder@example.com"})
                assert res.status_code == 403
                res = client.get("/projects", headers={"X-User-Email": "OWNER@example.com"})
                assert res.status_code == 200
        finally:
            app.state.provider = None

    def test_missing_allow_list_is_server_error(self, sql_provider, monkeypatch) -> None:
        monkeypatch.delenv("ALLOWED_EMAIL", raising=False)
        app.state.provider = sql_provider
        try:
            with TestClient(app) as client:
                res = client.get("/projects", headers={"X-User-Email": "owner@example.com"})
                assert res.status_code == 500
        finally:
            app.state.provider = None

    def test_crud_on_sql(self, sql_client) -> None:
        assert sql_client.get("/status").json() == {"ok": True, "backend": "sql"}
        p = create_project(sql_client, weight=3)
        m = create_member(sql_client, p["id"], progress=70)
        assert m["band"] == "A"
        res = sql_client.patch(f"/members/{m['id']}", json={"progress": 90})
        assert res.json()["progress"] == 90
        assert sql_client.get(f"/projects/{p['id']}/summary").json()["progress"] == 90
        assert sql_client.delete(f"/projects/{p['id']}").json()["members"] == 1

    def test_migrate_local_records(self, sql_client, sql_provider) -> None:
        local = sql_provider.local
        p = local.add_project({"name": "로컬 프로젝트"})
        local.add_member({"project_id": p.id, "name": "김"})

        res = sql_client.post("/migrate/local")
        assert res.json() == {"projects": 1, "members": 1, "milestones": 0}
        assert sql_client.post("/migrate/local").json() == {"projects": 0, "members": 0, "milestones": 0}
        assert [x["id"] for x in sql_client.get("/projects").json()] == [p.id]

    def test_migrate_requires_sql_backend(self, local_client) -> None:
        assert local_client.post("/migrate/local").status_code == 400
