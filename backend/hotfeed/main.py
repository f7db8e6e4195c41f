from __future__ import annotations
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from starlette.responses import JSONResponse
from starlette.requests import Request

from hotfeed.core.errors import DanglingAuthor, Forbidden, MalformedQuery, NotFound, PersistFailure, StoreUnavailable
from hotfeed.core.logging import configure_logging, log
from hotfeed.core.middleware import SecurityHeadersMiddleware, TimingMiddleware
from hotfeed.core.ratelimit import limiter
from hotfeed.core.settings import settings
from hotfeed.api import auth, feed, posts

configure_logging()

app = FastAPI(title="hotfeed API", version="0.1.0")
app.state.limiter = limiter

@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse({"message": "rate limit exceeded"}, status_code=429)

@app.exception_handler(MalformedQuery)
async def malformed_query_handler(request: Request, exc: MalformedQuery):
    return JSONResponse({"message": exc.message}, status_code=400)

@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse({"message": exc.message}, status_code=404)

@app.exception_handler(DanglingAuthor)
async def dangling_author_handler(request: Request, exc: DanglingAuthor):
    log.error("data integrity fault on %s: %s", request.url.path, exc.message)
    return JSONResponse({"message": "post references a missing author"}, status_code=500)

@app.exception_handler(Forbidden)
async def forbidden_handler(request: Request, exc: Forbidden):
    return JSONResponse({"message": exc.message}, status_code=403)

@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    return JSONResponse({"message": exc.message}, status_code=503)

@app.exception_handler(PersistFailure)
async def persist_failure_handler(request: Request, exc: PersistFailure):
    return JSONResponse({"message": exc.message}, status_code=500)

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(TimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(feed.router)
app.include_router(posts.router)

@app.get("/health")
@limiter.limit(settings.health_rate_limit)
async def health(request: Request):
    return {"ok": True}
