from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import CORS_ALLOW_ORIGINS, GZIP_MINIMUM_SIZE, WEBHOOK_SECRET
from .database.database import dispose_engine, get_db, health_check, init_engine
from .routes import order, product, webhook
from .utils.exceptions import StorefrontError
from .utils.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_engine()
    if not WEBHOOK_SECRET:
        logger.warning("WEBHOOK_SECRET is not set, payment notifications are not authenticated")
    try:
        yield
    finally:
        dispose_engine()


app = FastAPI(title="Storefront", lifespan=lifespan)

app.add_middleware(GZipMiddleware, minimum_size=GZIP_MINIMUM_SIZE)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    if exc.status_code >= 500:
        logger.opt(exception=exc).error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": "Internal server error"})
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=400,
        content={"error": f"{location}: {message}" if location else message},
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.opt(exception=exc).error(f"{request.method} {request.url.path} database error")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"{request.method} {request.url.path} unhandled error")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get("/health", tags=["health"])
async def health(db: Session = Depends(get_db)):
    report = health_check(db)
    return JSONResponse(status_code=200 if report["status"] == "healthy" else 503, content=report)


app.include_router(order.router)
app.include_router(order.admin_router)
app.include_router(product.router)
app.include_router(webhook.router)
