from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

import wartek.models  # noqa: F401  registers tables on Base.metadata
from wartek.core.config import settings
from wartek.core.db import create_tables
from wartek.core.errors import WarTekError
from wartek.core.logconfig import configure_logging
from wartek.api.users import router as users_router
from wartek.api.posts import router as posts_router
from wartek.api.ai import router as ai_router
from wartek.api.news import router as news_router
from wartek.api.timeline import router as timeline_router

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="WarTek API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(users_router)
app.include_router(posts_router)
app.include_router(ai_router)
app.include_router(news_router)
app.include_router(timeline_router)

@app.exception_handler(WarTekError)
async def wartek_error_handler(request: Request, exc: WarTekError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"message": message})

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})

@app.on_event("startup")
async def on_startup():
    await create_tables()

@app.get("/", response_class=PlainTextResponse)
async def root():
    return "WarTek API Running"

@app.get("/health")
async def health():
    return {"ok": True}
