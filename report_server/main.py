"""
Application factory for the report server.
State (reports, rate-limit counters, credential hashes) is created here and lives only as long as the process.
"""

import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from report_server.authentication import router as auth_router
from report_server.authentication.security import CredentialValidator
from report_server.config import Settings, get_settings
from report_server.logger import setup_logging
from report_server.ratelimit.utils import FixedWindowRateLimiter
from report_server.reports import router as reports_router
from report_server.reports.utils import ReportStore

logger = logging.getLogger(__name__)


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return "Invalid request body: " + "; ".join(parts)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(title="Report Server")
    app.state.settings = settings
    app.state.report_store = ReportStore()
    app.state.rate_limiter = FixedWindowRateLimiter(
        max_requests=settings.report_rate_limit_max,
        window_seconds=settings.report_rate_limit_window_seconds,
    )
    app.state.credential_validator = CredentialValidator.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request, exc: StarletteHTTPException):
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request, exc: RequestValidationError):
        return JSONResponse({"error": _format_validation_errors(exc)}, status_code=status.HTTP_400_BAD_REQUEST)

    app.include_router(reports_router.router)
    app.include_router(auth_router.router)

    # Everything else goes to the dashboard
    @app.get("/{path:path}", include_in_schema=False)
    def fallback(path: str):
        return RedirectResponse(url="/reports", status_code=status.HTTP_301_MOVED_PERMANENTLY)

    if not app.state.credential_validator.configured:
        logger.warning("LOGIN_HASHES is empty; dashboard logins will always fail")
    logger.info("Reports available at: %s", settings.dashboard_url)
    logger.info("GitHub integration: %s", "ENABLED" if settings.ban_list_enabled else "DISABLED")
    return app


app = create_app()


def run():
    settings = get_settings()
    uvicorn.run("report_server.main:app", host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
