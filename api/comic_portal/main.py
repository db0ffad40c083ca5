import logging
import sys
import time
import uuid
from datetime import datetime, timezone
from functools import lru_cache

from fastapi import FastAPI, Depends, Path, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .errors import ComicPortalError, InvalidQueryError
from .schemas import Comic, SearchResult
from .service import ComicService
from .settings import settings
from .templates import render

logger = logging.getLogger(__name__)

app = FastAPI(title="Comic Portal")

limiter = Limiter(key_func=get_remote_address)
app.state.limiter = limiter
# one budget per client across all of /api
api_limit = limiter.shared_limit(settings.API_RATE_LIMIT, scope="api")

stats = {
    "total_requests": 0,
    "endpoint_stats": {},
    "start_time": time.time(),
}

# Messages for query/path parameters rejected by FastAPI validation
VALIDATION_MESSAGES = {
    "comic_id": "Comic ID must be a positive integer",
    "q": f"Query must be between 1 and {settings.MAX_QUERY_LENGTH} characters",
    "page": "Page must be a positive integer",
    "limit": f"Limit must be between 1 and {settings.MAX_PAGE_SIZE}",
}

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}

@lru_cache(maxsize=1)
def _configure_logging() -> None:
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )
    logging.getLogger("comic_portal").setLevel(level)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

@app.on_event("startup")
async def startup_event():
    _configure_logging()
    app.state.service = ComicService.from_settings(settings)
    logger.info("Comic portal started against %s", settings.XKCD_BASE_URL)

@app.on_event("shutdown")
async def shutdown_event():
    service = getattr(app.state, "service", None)
    if service is not None:
        await service.close()

def get_service(request: Request) -> ComicService:
    return request.app.state.service

def _error_body(error: str, message: str) -> dict:
    return {"error": error, "message": message}

def _is_api(request: Request) -> bool:
    return request.url.path.startswith("/api")

def _error_response(request: Request, status_code: int, error: str, message: str):
    if _is_api(request):
        return JSONResponse(status_code=status_code, content=_error_body(error, message))
    return render("error.html", {"error": error, "message": message}, status_code=status_code)

@app.middleware("http")
async def request_logging(request: Request, call_next):
    request_id = uuid.uuid4().hex[:9]
    request.state.request_id = request_id
    started = time.perf_counter()

    client_ip = request.client.host if request.client else ""
    logger.info(
        "Incoming request id=%s method=%s path=%s ip=%s ua=%s",
        request_id, request.method, request.url.path, client_ip,
        request.headers.get("user-agent", ""),
    )

    stats["total_requests"] += 1
    endpoint = f"{request.method} {request.url.path}"
    stats["endpoint_stats"][endpoint] = stats["endpoint_stats"].get(endpoint, 0) + 1

    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.error("Failed id=%s method=%s path=%s after %.1fms", request_id, request.method, request.url.path, elapsed_ms)
        raise

    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info("Completed id=%s status=%d in %.1fms", request_id, response.status_code, elapsed_ms)
    response.headers["X-Request-ID"] = request_id
    for k, v in SECURITY_HEADERS.items():
        response.headers.setdefault(k, v)
    return response

@app.exception_handler(ComicPortalError)
async def comic_error_handler(request: Request, exc: ComicPortalError):
    logger.warning(
        "%s on %s %s: %s",
        type(exc).__name__, request.method, request.url.path, exc.message,
    )
    return _error_response(request, exc.status_code, exc.title, exc.message)

@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning("Rate limit hit by %s on %s %s", get_remote_address(request), request.method, request.url.path)
    return JSONResponse(status_code=429, content={"error": "Too many requests, please try again later"})

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        field = errors[0].get("loc", ("",))[-1]
        message = VALIDATION_MESSAGES.get(field, errors[0].get("msg", message))
    return _error_response(request, 400, "Validation Error", message)

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(request, 500, "Internal Server Error", "Something went wrong on our end")

def _clean_query(q: str) -> str:
    q = q.strip()
    if not q or len(q) > settings.MAX_QUERY_LENGTH:
        raise InvalidQueryError(VALIDATION_MESSAGES["q"])
    return q

# JSON API

@app.get("/api/comics/latest", response_model=Comic)
@api_limit
async def latest_comic(request: Request, service: ComicService = Depends(get_service)):
    return await service.resolve_latest()

@app.get("/api/comics/random", response_model=Comic)
@api_limit
async def random_comic(request: Request, service: ComicService = Depends(get_service)):
    return await service.resolve_random()

@app.get("/api/comics/search", response_model=SearchResult)
@api_limit
async def search_comics(
    request: Request,
    q: str = Query(...),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    service: ComicService = Depends(get_service),
):
    return await service.search(_clean_query(q), page, limit)

@app.get("/api/comics/{comic_id}", response_model=Comic)
@api_limit
async def comic_by_id(request: Request, comic_id: int = Path(..., ge=1), service: ComicService = Depends(get_service)):
    return await service.resolve_by_id(comic_id)

@app.get("/api/health")
@api_limit
def health(request: Request):
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": time.time() - stats["start_time"],
    }

@app.get("/api/stats")
@api_limit
def get_stats(request: Request, service: ComicService = Depends(get_service)):
    return {
        "total_requests": stats["total_requests"],
        "endpoint_stats": stats["endpoint_stats"],
        "uptime": time.time() - stats["start_time"],
        "cached_entries": len(service.cache),
    }

# CORS preflight, answered before the limiter
@app.options("/api/{path:path}")
def api_preflight(path: str):
    return Response(status_code=204)

@app.api_route("/api/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
@api_limit
def api_not_found(request: Request, path: str):
    return JSONResponse(status_code=404, content={"error": "Endpoint not found", "path": request.url.path})

# HTML pages

@app.get("/", response_class=HTMLResponse)
async def home(service: ComicService = Depends(get_service)):
    comic = await service.resolve_latest()
    return render("comic.html", {"comic": comic})

@app.get("/comics/{comic_id}", response_class=HTMLResponse)
async def comic_page(comic_id: int = Path(..., ge=1), service: ComicService = Depends(get_service)):
    comic = await service.resolve_by_id(comic_id)
    return render("comic.html", {"comic": comic})

@app.get("/search", response_class=HTMLResponse)
async def search_page(
    q: str = Query(...),
    page: int = Query(1, ge=1),
    service: ComicService = Depends(get_service),
):
    q = _clean_query(q)
    result = await service.search(q, page)
    return render("search.html", {"result": result, "q": q})
