import asyncio
import logging
import os
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from flipbook.config import settings
from flipbook.database import create_db_and_tables
from flipbook.exceptions import FlipbookError
from flipbook.jobs.page_cache_sweep import run_periodic_sweep
from flipbook.jobs.purge_expired import run_periodic_purge
from flipbook.routes import admin, admin_auth, flipbooks, image_slider
from flipbook.services.page_cache import PageCache

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.env == "local":
        create_db_and_tables()

    app.state.page_cache = PageCache(
        max_entries=settings.page_cache_max_entries,
        ttl_seconds=settings.page_cache_ttl_seconds,
        trim_fraction=settings.page_cache_trim_fraction,
    )

    tasks = [
        asyncio.create_task(
            run_periodic_sweep(app.state.page_cache, settings.page_cache_sweep_interval_seconds)
        )
    ]
    if settings.retention_interval_seconds > 0:
        tasks.append(
            asyncio.create_task(
                run_periodic_purge(app.state.page_cache, settings.retention_interval_seconds)
            )
        )

    yield

    for task in tasks:
        task.cancel()
    for task in tasks:
        with suppress(asyncio.CancelledError):
            await task


app = FastAPI(title="Flipbook API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FlipbookError)
async def flipbook_error_handler(request: Request, exc: FlipbookError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.error}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid request", "error": str(exc.errors())},
    )


app.include_router(flipbooks.router, prefix="/api/flipbook", tags=["Flipbook"])
app.include_router(admin_auth.router, prefix="/api/admin/auth", tags=["Admin Auth"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])
app.include_router(image_slider.router, prefix="/api/imageslider", tags=["Image Slider"])

os.makedirs(settings.image_dir, exist_ok=True)
app.mount(image_slider.IMAGE_URL_PREFIX, StaticFiles(directory=settings.image_dir), name="slider-images")


@app.get("/")
def root():
    return {
        "flipbook_endpoints": [
            "/api/flipbook/register",
            "/api/flipbook/verify/{access_token}",
            "/api/flipbook/{access_token}/metadata",
            "/api/flipbook/{access_token}/page/{page_number}",
        ],
        "admin_auth_endpoints": [
            "/api/admin/auth/check", "/api/admin/auth/register", "/api/admin/auth/login"
        ],
        "admin_endpoints": [
            "/api/admin/stats", "/api/admin/flipbooks", "/api/admin/users",
            "/api/admin/users/{user_id}/flipbooks", "/api/admin/flipbook/{flipbook_id}",
            "/api/admin/cache",
        ],
        "image_slider_endpoints": [
            "/api/imageslider/", "/api/imageslider/upload", "/api/imageslider/{image_id}"
        ],
    }
