import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from progress_engine import __version__
from progress_engine.database import init_db
from progress_engine.dependencies import get_settings
from progress_engine.lms.router import router as progress_router
from progress_engine.middleware import (
    RequestIdFilter,
    error_envelope_middleware,
    http_exception_handler,
    request_id_middleware,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    init_db(settings.database_url, echo=settings.sql_echo)
    logging.getLogger(__name__).info("Progress engine started (%s)", settings.env_name)
    yield


SWAGGER_DESCRIPTION = """\
## Course Progress Engine

Enrollment, sequential lesson access, lesson progress and course
aggregate statistics for the course catalog.

### Caller identity

Endpoints acting on behalf of a learner or instructor read the caller's
profile id from the `X-Profile-ID` header set by the API gateway.

### Status Transitions

```
Course:     DRAFT → PUBLISHED → ARCHIVED   (PUBLISHED → DRAFT allowed)
Enrollment: pending → paid | deactivated   (free enrollments start active)
Lesson:     NOT_STARTED → IN_PROGRESS → COMPLETED
```
"""


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s [%(request_id)s]: %(message)s",
    )
    for handler in logging.getLogger().handlers:
        handler.addFilter(RequestIdFilter())
    app = FastAPI(
        title="Course Progress Engine",
        version=__version__,
        description=SWAGGER_DESCRIPTION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )
    app.middleware("http")(error_envelope_middleware)
    app.middleware("http")(request_id_middleware)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.include_router(progress_router, prefix="/api/v1")

    @app.get("/health", tags=["Health"])
    async def health() -> dict:
        return {"status": "ok", "service": "progress"}

    return app


app = create_app()
