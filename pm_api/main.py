import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pm_api.config import settings
from pm_api.core.database import SessionLocal, init_db
from pm_api.exceptions import AppError, ErrorCode
from pm_api.routes.admin_routes import router as admin_router
from pm_api.routes.auth_routes import router as auth_router
from pm_api.routes.email_routes import router as email_router
from pm_api.routes.project_routes import router as project_router
from pm_api.routes.specialization_routes import router as specialization_router
from pm_api.routes.task_history_routes import router as task_history_router
from pm_api.routes.task_routes import router as task_router
from pm_api.routes.team_member_routes import router as team_member_router
from pm_api.routes.user_routes import router as user_router
from pm_api.services.permission_service import seed_admin, seed_defaults
from pm_api.services.token_service import get_token_service

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    # fail fast on a bad signing secret
    get_token_service()
    init_db()
    with SessionLocal() as db:
        seed_defaults(db)
        seed_admin(db)
    logger.info("Database initialised and defaults seeded")
    yield


app = FastAPI(
    title="Project Management API",
    description="Projects, team membership and task tracking with JWT authentication.",
    version="0.1.0",
    lifespan=lifespan,
)

allowed_origins = [o.strip() for o in settings.ALLOWED_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _failure(code: ErrorCode, message: str) -> JSONResponse:
    return JSONResponse(status_code=code.status_code, content={"code": code.status_code, "message": message})


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _failure(exc.code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", ErrorCode.INVALID_KEY.default_message) if errors else ErrorCode.INVALID_KEY.default_message
    return _failure(ErrorCode.INVALID_KEY, message)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _failure(ErrorCode.INTERNAL_ERROR, ErrorCode.INTERNAL_ERROR.default_message)


@app.get("/", tags=["health"])
def healthcheck():
    return {"status": "ok", "service": "pm-api", "version": "0.1.0"}


app.include_router(auth_router)
app.include_router(project_router)
app.include_router(task_router)
app.include_router(team_member_router)
app.include_router(task_history_router)
app.include_router(specialization_router)
app.include_router(user_router)
app.include_router(email_router)
app.include_router(admin_router)
