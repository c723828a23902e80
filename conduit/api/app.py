"""FastAPI application factory.

Routes read everything through the service registry stored on `app.state`;
each request gets its own registry handle over the shared pool.
"""

from time import perf_counter
from uuid import uuid4

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware

from conduit.api.schemas import (
    ArticleListResponse,
    ArticleResponse,
    CommentListResponse,
    ProfileResponse,
    TagListResponse,
)
from conduit.common.logging import request_id_ctx
from conduit.common.metrics import http_request_duration_seconds, http_requests_total, metrics_response
from conduit.services.registry import ServiceRegistry


def get_registry(request: Request) -> ServiceRegistry:
    """Dependency returning a per-request handle to the shared registry."""

    return request.app.state.registry.clone()


router = APIRouter(prefix="/api")


@router.get("/tags", response_model=TagListResponse)
def list_tags(registry: ServiceRegistry = Depends(get_registry)):
    return TagListResponse(tags=registry.tags.list_tags())


@router.get("/articles", response_model=ArticleListResponse)
def list_articles(
    tag: str | None = None,
    author: str | None = None,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    registry: ServiceRegistry = Depends(get_registry),
):
    """List recent articles, optionally filtered by tag or author."""

    articles = registry.articles.list_articles(tag=tag, author=author, limit=limit, offset=offset)
    return ArticleListResponse(articles=articles, articles_count=len(articles))


@router.get("/articles/{slug}", response_model=ArticleResponse)
def get_article(slug: str, registry: ServiceRegistry = Depends(get_registry)):
    article = registry.articles.get_by_slug(slug)
    if article is None:
        raise HTTPException(status_code=404, detail="article not found")
    return article


@router.get("/articles/{slug}/comments", response_model=CommentListResponse)
def list_comments(slug: str, registry: ServiceRegistry = Depends(get_registry)):
    try:
        comments = registry.comments.list_for_article(slug)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail="article not found") from exc
    return CommentListResponse(comments=comments)


@router.get("/profiles/{username}", response_model=ProfileResponse)
def get_profile(username: str, registry: ServiceRegistry = Depends(get_registry)):
    profile = registry.profiles.get_profile(username)
    if profile is None:
        raise HTTPException(status_code=404, detail="profile not found")
    return profile


def create_app(registry: ServiceRegistry, cors_origins: list[str]) -> FastAPI:
    """Build the application with CORS applied to every mounted route."""

    service_name = registry.settings.service_name
    app = FastAPI(title="Conduit API")
    app.state.registry = registry

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        """Tag the request with an id and record count and latency."""

        start = perf_counter()
        token = request_id_ctx.set(request.headers.get("x-request-id") or str(uuid4()))
        route = request.url.path
        method = request.method
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            route_obj = request.scope.get("route")
            if route_obj is not None and getattr(route_obj, "path", None):
                route = route_obj.path
            response.headers["x-request-id"] = request_id_ctx.get()
            return response
        finally:
            elapsed = max(0.0, perf_counter() - start)
            http_request_duration_seconds.labels(service=service_name, route=route, method=method).observe(elapsed)
            http_requests_total.labels(
                service=service_name,
                route=route,
                method=method,
                status_code=str(status_code),
            ).inc()
            request_id_ctx.reset(token)

    # Added last so it wraps everything, including error responses.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials="*" not in cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.get("/metrics")
    def metrics():
        """Prometheus scrape endpoint."""

        return metrics_response()

    @app.get("/health")
    def health():
        """Container health probe endpoint."""

        return {"ok": True}

    return app
