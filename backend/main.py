"""
Main FastAPI application
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import select

from backend.config import get_settings
from backend.database import engine, Base, AsyncSessionLocal
from backend.models import User
from backend.core.exceptions import DuplicationError
from backend.api.auth import get_password_hash
from backend.api import auth, projects
from backend.services.duplication import jobs

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")

    # Seed default admin user
    async with AsyncSessionLocal() as session:
        result = await session.execute(select(User).where(User.email == "admin@projecthub.local"))
        if not result.scalar_one_or_none():
            session.add(User(
                email="admin@projecthub.local",
                full_name="Administrator",
                hashed_password=get_password_hash("admin123"),
                is_admin=True,
            ))
            await session.commit()
            logger.info("Created default admin user")

    yield

    # Duplication jobs cannot be cancelled; let running ones finish
    if jobs.running_count():
        logger.info(f"Waiting for {jobs.running_count()} duplication job(s) to finish")
        await jobs.drain()

    await engine.dispose()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Every client-facing error is rendered as {"error": message}
@app.exception_handler(DuplicationError)
async def duplication_error_handler(request: Request, exc: DuplicationError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", "invalid value"))
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request: " + "; ".join(problems)},
    )


# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(projects.router, prefix="/api/projects", tags=["Projects"])


@app.get("/")
async def root():
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy", "duplication_jobs": jobs.running_count()}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "backend.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
