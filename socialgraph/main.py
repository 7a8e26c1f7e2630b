from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from socialgraph.core.config import settings
from socialgraph.core.exceptions import SocialGraphError
from socialgraph.db.init_db import create_all_tables
from socialgraph.middleware.request_logging import RequestLoggingMiddleware
from socialgraph.modules.user_management.api.router import router as user_router
from socialgraph.modules.posts.api.router import router as posts_router
from socialgraph.modules.friendships.api.router import router as friendships_router
from socialgraph.modules.follows.api.router import router as follows_router
from socialgraph.modules.home_feed.api.router import router as home_feed_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("socialgraph")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting server in {settings.ENVIRONMENT} mode")
    create_all_tables()
    yield


# Initialize the FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    debug=settings.DEBUG,
    description="Social graph and home feed service",
    version=settings.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


@app.exception_handler(SocialGraphError)
async def social_graph_error_handler(request: Request, exc: SocialGraphError):
    if exc.retryable:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} refused ({exc.kind}): {exc.message}")
    return JSONResponse(
        status_code=exc.status_code, content={"error": exc.to_dict()}, headers=exc.headers
    )


# Add middleware
app.add_middleware(RequestLoggingMiddleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(user_router, prefix=f"{settings.API_V1_STR}/users", tags=["users"])
app.include_router(posts_router, prefix=f"{settings.API_V1_STR}/posts", tags=["posts"])
app.include_router(friendships_router, prefix=f"{settings.API_V1_STR}/friends", tags=["friendships"])
app.include_router(follows_router, prefix=f"{settings.API_V1_STR}/follows", tags=["follows"])
app.include_router(home_feed_router, prefix=f"{settings.API_V1_STR}/feed", tags=["home feed"])


@app.get("/")
async def root():
    return {
        "message": "Social graph service",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "documentation": "/docs" if settings.DEBUG else None,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("socialgraph.main:app", host="0.0.0.0", port=8000, reload=True)
