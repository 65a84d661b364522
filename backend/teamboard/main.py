import logging
from typing import Optional, List, Dict

from fastapi import FastAPI, Depends, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config
from .aggregator import TOP_CONTRIBUTORS_LIMIT
from .auth import require_user
from .db import select_backend
from .errors import AccessDenied, BandConflictError, RecordNotFound
from .models import Project, Member, Milestone
from .schemas import (
    BandFilter,
    BandStats,
    ConsolidatedContributor,
    ConsolidatedPerson,
    Contributor,
    DeleteResult,
    EvaluationStats,
    MemberCreate,
    MemberDetail,
    MemberUpdate,
    MigrationResult,
    MilestoneCreate,
    MilestoneUpdate,
    OverallStats,
    ProjectCreate,
    ProjectSummary,
    ProjectUpdate,
)
from .services import DashboardService, migrate_local_to_sql
from .store import RecordStore

config.configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Teamboard", dependencies=[Depends(require_user)])

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup():
    # 테스트에서는 provider를 미리 주입한다
    if getattr(app.state, "provider", None) is None:
        app.state.provider = select_backend()
    logger.info("Record store backend: %s", app.state.provider.backend)


@app.exception_handler(RecordNotFound)
def record_not_found_handler(request: Request, exc: RecordNotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(AccessDenied)
def access_denied_handler(request: Request, exc: AccessDenied):
    return JSONResponse(status_code=403, content={"detail": str(exc)})


@app.exception_handler(BandConflictError)
def band_conflict_handler(request: Request, exc: BandConflictError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


def get_store(request: Request):
    yield from request.app.state.provider.open()


def get_service(store: RecordStore = Depends(get_store)) -> DashboardService:
    return DashboardService(store, band_policy=config.get_band_policy())


@app.get("/status")
def status(request: Request):
    return {"ok": True, "backend": request.app.state.provider.backend}


# -----------------------
# Projects
# -----------------------
@app.post("/projects", response_model=Project)
def create_project(body: ProjectCreate, store: RecordStore = Depends(get_store)):
    return store.add_project(body.model_dump(exclude_unset=True))


@app.get("/projects", response_model=List[Project])
def list_projects(year: Optional[int] = None, svc: DashboardService = Depends(get_service)):
    return svc.projects(year)


@app.get("/projects/{pid}", response_model=Project)
def get_project(pid: str, store: RecordStore = Depends(get_store)):
    project = store.get_project(pid)
    if not project:
        raise HTTPException(404, "Project not found")
    return project


@app.patch("/projects/{pid}", response_model=Project)
def patch_project(pid: str, body: ProjectUpdate, store: RecordStore = Depends(get_store)):
    return store.update_project(pid, body.model_dump(exclude_unset=True))


@app.delete("/projects/{pid}", response_model=DeleteResult)
def delete_project(pid: str, store: RecordStore = Depends(get_store)):
    members, milestones = store.delete_project(pid)
    return DeleteResult(members=members, milestones=milestones)


@app.get("/projects/{pid}/summary", response_model=ProjectSummary)
def project_summary(pid: str, svc: DashboardService = Depends(get_service)):
    return svc.project_summary(pid)


@app.get("/projects/{pid}/members", response_model=List[Member])
def project_members(pid: str, band: BandFilter = "all", svc: DashboardService = Depends(get_service)):
    return svc.members_by_project_and_band(pid, band)


# -----------------------
# Milestones
# -----------------------
@app.post("/projects/{pid}/milestones", response_model=Milestone)
def create_milestone(pid: str, body: MilestoneCreate, store: RecordStore = Depends(get_store)):
    if not store.get_project(pid):
        raise HTTPException(404, "Project not found")
    data = body.model_dump(exclude_unset=True)
    data["project_id"] = pid
    return store.add_milestone(data)


@app.get("/projects/{pid}/milestones", response_model=List[Milestone])
def list_milestones(pid: str, svc: DashboardService = Depends(get_service)):
    return svc.milestones_for_project(pid)


@app.patch("/milestones/{mid}", response_model=Milestone)
def patch_milestone(mid: str, body: MilestoneUpdate, store: RecordStore = Depends(get_store)):
    return store.update_milestone(mid, body.model_dump(exclude_unset=True))


@app.delete("/milestones/{mid}")
def delete_milestone(mid: str, store: RecordStore = Depends(get_store)):
    store.delete_milestone(mid)
    return {"ok": True}


# -----------------------
# Members
# -----------------------
@app.post("/members", response_model=Member)
def create_member(body: MemberCreate, store: RecordStore = Depends(get_store)):
    if not store.get_project(body.project_id):
        raise HTTPException(404, "Project not found")
    return store.add_member(body.model_dump(exclude_unset=True))


@app.get("/members", response_model=List[Member])
def list_members(band: BandFilter = "all", year: Optional[int] = None,
                 svc: DashboardService = Depends(get_service)):
    return svc.members(band, year)


@app.patch("/members/{mid}", response_model=Member)
def patch_member(mid: str, body: MemberUpdate, store: RecordStore = Depends(get_store)):
    data = body.model_dump(exclude_unset=True)
    if "project_id" in data and not store.get_project(data["project_id"]):
        raise HTTPException(404, "Project not found")
    return store.update_member(mid, data)


@app.delete("/members/{mid}")
def delete_member(mid: str, store: RecordStore = Depends(get_store)):
    store.delete_member(mid)
    return {"ok": True}


# -----------------------
# Dashboard
# -----------------------
@app.get("/stats", response_model=OverallStats)
def overall_stats(year: Optional[int] = None, svc: DashboardService = Depends(get_service)):
    return svc.overall_stats(year)


@app.get("/stats/bands", response_model=Dict[str, BandStats])
def band_stats(year: Optional[int] = None, svc: DashboardService = Depends(get_service)):
    return svc.all_band_stats(year)


@app.get("/contributors/top", response_model=List[Contributor])
def top_contributors(limit: int = Query(TOP_CONTRIBUTORS_LIMIT, ge=0), band: BandFilter = "all",
                     year: Optional[int] = None,
                     svc: DashboardService = Depends(get_service)):
    return svc.top_contributors(limit, band, year)


@app.get("/contributors/consolidated", response_model=List[ConsolidatedContributor])
def consolidated_contributors(band: BandFilter = "all", year: Optional[int] = None,
                              svc: DashboardService = Depends(get_service)):
    return svc.consolidated_contributors(band, year)


@app.get("/roster", response_model=List[ConsolidatedPerson])
def roster(band: BandFilter = "all", year: Optional[int] = None,
           svc: DashboardService = Depends(get_service)):
    return svc.roster(band, year)


@app.get("/roster/{name}", response_model=MemberDetail)
def member_detail(name: str, svc: DashboardService = Depends(get_service)):
    return svc.member_detail(name)


@app.get("/evaluation", response_model=List[ConsolidatedPerson])
def evaluation(band: BandFilter = "all", year: Optional[int] = None,
               svc: DashboardService = Depends(get_service)):
    return svc.evaluation(band, year)


@app.get("/evaluation/stats", response_model=EvaluationStats)
def evaluation_stats(year: Optional[int] = None, svc: DashboardService = Depends(get_service)):
    return svc.evaluation_stats(year)


# -----------------------
# Migration
# -----------------------
@app.post("/migrate/local", response_model=MigrationResult)
def migrate_local(request: Request, store: RecordStore = Depends(get_store)):
    provider = request.app.state.provider
    if provider.backend != config.BACKEND_SQL:
        raise HTTPException(400, "SQL record store is not active")
    return migrate_local_to_sql(provider.local, store)
