"""
Handles report submission, listing, and moderator actions.
/api/reports and /api/action are not gated by /auth; the dashboard login is the only check.
"""

from pathlib import Path

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from fastapi.responses import FileResponse, RedirectResponse

from report_server.config import Settings
from report_server.errors import ReportServerError
from report_server.ratelimit.utils import client_address, enforce_report_rate_limit
from report_server.reports import schemas, utils

DASHBOARD_PAGE = Path(__file__).resolve().parent.parent / "static" / "reports.html"

router = APIRouter(tags=["Reports"])


def get_report_store(request: Request) -> utils.ReportStore:
    return request.app.state.report_store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def _http_error(error: ReportServerError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.message)


@router.post(
    "/report",
    response_model=schemas.ReportCreated,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_report_rate_limit)],
)
def submit_report(
    report: schemas.ReportCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    store: utils.ReportStore = Depends(get_report_store),
    settings: Settings = Depends(get_app_settings),
):
    """Submit a new report (rate limited per client address)."""
    try:
        created = utils.submit_report(store, report, client_address(request), background_tasks, settings)
    except ReportServerError as e:
        raise _http_error(e)
    return {"success": True, "message": f"Report {created.id} submitted successfully!", "report_id": created.id}


@router.api_route("/report", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
def report_redirect():
    return RedirectResponse(url="/reports", status_code=status.HTTP_301_MOVED_PERMANENTLY)


@router.get("/reports", include_in_schema=False)
def dashboard():
    """Moderator dashboard page."""
    return FileResponse(DASHBOARD_PAGE, media_type="text/html")


@router.get("/api/reports", response_model=schemas.ReportListing)
def list_reports(store: utils.ReportStore = Depends(get_report_store)):
    """All pending and actioned reports, each in submission / action order."""
    pending, actioned = store.snapshot()
    return {"pending": pending, "actioned": actioned}


@router.post("/api/action", response_model=schemas.ActionResult)
def action_report(
    request_body: schemas.ActionRequest,
    background_tasks: BackgroundTasks,
    store: utils.ReportStore = Depends(get_report_store),
    settings: Settings = Depends(get_app_settings),
):
    """Approve or deny a pending report."""
    try:
        report = utils.action_report(store, request_body.report_id, request_body.action, background_tasks, settings)
    except ReportServerError as e:
        raise _http_error(e)
    return {"success": True, "message": f"Report {report.id} {report.status.value} successfully!"}
