import logging

from fastapi import FastAPI

from lms.core.config import DATABASE_URL, LOG_LEVEL
from lms.core.logging_middleware import LoggingMiddleware
from lms.db.init_db import init_db
from lms.db.session import build_engine, build_session_factory

# Import routers directly
from lms.routers.admin import router as admin_router
from lms.routers.auth import router as auth_router
from lms.routers.curriculum import router as curriculum_router
from lms.routers.progress import router as progress_router
from lms.routers.quizzes import router as quizzes_router
from lms.routers.sections import router as sections_router
from lms.routers.students import router as students_router
from lms.routers.submissions import router as submissions_router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def create_app(database_url: str = DATABASE_URL) -> FastAPI:
    app = FastAPI(title="Section LMS")

    # one engine per process; handlers get sessions through get_db
    app.state.engine = build_engine(database_url)
    app.state.session_factory = build_session_factory(app.state.engine)

    # Middleware
    app.add_middleware(LoggingMiddleware)

    # Health check
    @app.get("/health")
    def health():
        return {"status": "ok"}

    # Startup event
    @app.on_event("startup")
    def on_startup():
        init_db(app.state.engine)

    # Include routers
    app.include_router(auth_router, prefix="/auth", tags=["auth"])
    app.include_router(admin_router, prefix="/admin", tags=["admin"])
    app.include_router(students_router, prefix="/students", tags=["students"])
    app.include_router(sections_router, prefix="/sections", tags=["sections"])
    app.include_router(curriculum_router, tags=["curriculum"])
    app.include_router(submissions_router, tags=["submissions"])
    app.include_router(quizzes_router, tags=["quizzes"])

    # Progress dashboard (prefix defined on the router)
    app.include_router(progress_router)

    return app


app = create_app()
