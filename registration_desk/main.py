from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from registration_desk import routes
from registration_desk.config import Settings, get_settings
from registration_desk.dependencies import Services, build_services, close_services, init_services
from registration_desk.exceptions import RegistrationDeskError
from registration_desk.logging_config import get_logger, setup_logging

logger = get_logger("app")


def _failure(status_code: int, message: str, error_type: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, "error_type": error_type},
    )


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    """Build the FastAPI app.

    ``services`` lets callers (tests, scripts) inject a pre-wired set of
    collaborators; otherwise they are built from ``settings`` at startup.
    """
    if settings is None:
        settings = services.settings if services is not None else get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # --- STARTUP ---
        init_services(services if services is not None else build_services(settings))
        logger.info("報名取消系統已啟動 (sheet=%s)", settings.SHEET_NAME)
        yield
        # --- SHUTDOWN ---
        close_services()
        logger.info("Shutting down")

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="依身分證字號查詢、取消與確認課程報名。",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # --- ERROR HANDLERS ---
    @app.exception_handler(RegistrationDeskError)
    async def registration_desk_error_handler(_request: Request, exc: RegistrationDeskError):
        if exc.status_code >= 500:
            logger.error("%s: %s", type(exc).__name__, exc.message)
        return _failure(exc.status_code, exc.message, exc.error_type)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(_request: Request, exc: RequestValidationError):
        return _failure(status.HTTP_400_BAD_REQUEST, "請求資料格式不正確", "validation")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return _failure(exc.status_code, "找不到該資源", "not_found")
        return _failure(exc.status_code, str(exc.detail), "http")

    @app.exception_handler(Exception)
    async def unhandled_error_handler(_request: Request, exc: Exception):
        logger.exception("伺服器錯誤: %s", exc)
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "伺服器內部錯誤", "internal")

    app.include_router(routes.router, prefix="/api", tags=["Registrations"])

    # --- STATIC FRONTEND ---
    static_dir = Path(settings.STATIC_DIR)
    if static_dir.is_dir():
        app.mount("/static", StaticFiles(directory=static_dir), name="static")

    @app.get("/", include_in_schema=False)
    def index():
        index_file = static_dir / "index.html"
        if index_file.is_file():
            return FileResponse(index_file)
        return {"status": "online", "message": f"{settings.PROJECT_NAME} 已就緒", "api": "/api"}

    return app


def run() -> None:
    settings = get_settings()
    setup_logging(settings.LOG_DIR, settings.LOG_LEVEL, to_file=settings.LOG_TO_FILE)
    uvicorn.run(create_app(settings), host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
