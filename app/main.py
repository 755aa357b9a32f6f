import logging
from contextlib import asynccontextmanager

uvicorn_logger = logging.getLogger("uvicorn")

app_logger = logging.getLogger("app")
app_logger.setLevel(logging.DEBUG)
app_logger.handlers = uvicorn_logger.handlers
app_logger.propagate = False

from fastapi import FastAPI, HTTPException, status, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

from app.core.config import settings
from app.api.dependencies import catalog_registry
from app.api.v1.auth import router as auth_router
from app.api.v1.catalog import router as catalog_router
from app.db.session import dispose_engine

logger = logging.getLogger(__name__)
logger.info("Application startup - logging configured")


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await catalog_registry.close()
    if settings.RECORD_BACKEND == "sql":
        await dispose_engine()


app = FastAPI(
    title=settings.APP_NAME,
    description="Storefront product catalog manager",
    version="1.0.0",
    openapi_url="/api/openapi.json",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

app.add_middleware(SessionMiddleware, secret_key=settings.SESSION_SECRET_KEY)
if settings.ASSET_BACKEND == "local":
    app.mount(settings.PUBLIC_UPLOAD_URL, StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="uploads")

app.include_router(auth_router)
app.include_router(catalog_router)


@app.get("/health")
async def health_check():
    return {"status": "ok"}


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )
