import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from task_thrower.app.middleware.access_log import AccessLogMiddleware
from task_thrower.app.routes import tasks
from task_thrower.config import Settings
from task_thrower.domain.errors import InvalidDate, PartialBatchFailure, ValidationError
from task_thrower.infra.db.sqlite import create_schema, make_engine, make_sessionmaker, make_sqlite_url
from task_thrower.infra.db.task_repo_memory import InMemoryTaskRepo
from task_thrower.infra.db.task_repo_sqlite import SQLiteTaskRepo
from task_thrower.observability.logging import setup_logging
from task_thrower.services.task_service import TaskService

logger = logging.getLogger("thrower.system")


def _error_body(e: Exception) -> dict:
    return {"error": getattr(e, "code", "error"), "message": str(e)}


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def _validation(request: Request, e: ValidationError):
        return JSONResponse(status_code=422, content=_error_body(e))

    @app.exception_handler(InvalidDate)
    async def _invalid_date(request: Request, e: InvalidDate):
        return JSONResponse(status_code=422, content=_error_body(e))

    @app.exception_handler(PartialBatchFailure)
    async def _partial(request: Request, e: PartialBatchFailure):
        body = _error_body(e)
        body["committed_ids"] = e.committed_ids
        body["pending_ids"] = e.pending_ids
        body["views"] = e.views.model_dump() if e.views is not None else None
        return JSONResponse(status_code=409, content=body)


def create_app(settings: Optional[Settings] = None, repo=None) -> FastAPI:
    settings = settings or Settings.from_env()
    setup_logging(settings)
    logger.info("system.start", extra={"category": "system", "event": "system.start", "store": settings.store})

    app = FastAPI(title="Task Thrower")
    app.add_middleware(AccessLogMiddleware)
    install_error_handlers(app)

    if repo is None and settings.store == "memory":
        repo = InMemoryTaskRepo(batch_size=settings.batch_size)

    if repo is None:
        # --- SQLite wiring ---
        engine = make_engine(make_sqlite_url(settings.db_path))
        repo = SQLiteTaskRepo(make_sessionmaker(engine), batch_size=settings.batch_size)

        @app.on_event("startup")
        async def _startup():
            await create_schema(engine)
            logger.info(
                "db.ready",
                extra={"category": "system", "event": "db.ready", "db_path": settings.db_path},
            )

        @app.on_event("shutdown")
        async def _shutdown():
            await engine.dispose()

    app.state.task_service = TaskService(repo)
    app.include_router(tasks.router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


def run() -> None:
    import uvicorn

    uvicorn.run("task_thrower.app.main:create_app", factory=True, host="127.0.0.1", port=8000)
