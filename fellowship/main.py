import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from fellowship.config import settings
from fellowship.core.exceptions import FellowshipError
from fellowship.core.middleware import SecurityHeadersMiddleware
from fellowship.modules.account import routes as account_routes
from fellowship.modules.attachments import routes as attachments_routes
from fellowship.modules.auth import routes as auth_routes
from fellowship.modules.conversations import routes as conversations_routes
from fellowship.modules.memberships import routes as memberships_routes
from fellowship.modules.messages import routes as messages_routes
from fellowship.modules.notifications import routes as notifications_routes
from fellowship.modules.users import routes as users_routes

API_PREFIX = "/api/v1"

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
# httpx logs every push gateway request at INFO
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger("fellowship")

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    description="Church community API",
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(FellowshipError)
async def domain_error_handler(request: Request, exc: FellowshipError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.debug("%s %s rejected (%d): %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    detail = "Internal server error" if settings.is_production else str(exc)
    return JSONResponse(status_code=500, content={"detail": detail})


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

for module in (
    auth_routes,
    users_routes,
    memberships_routes,
    conversations_routes,
    messages_routes,
    attachments_routes,
    notifications_routes,
    account_routes,
):
    app.include_router(module.router, prefix=API_PREFIX)


@app.on_event("startup")
async def startup_event():
    logger.info("%s starting (environment=%s)", settings.app_name, settings.environment)
    if not settings.supabase_service_role_key:
        logger.warning("No service role key configured; account deletion will not work")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("%s stopped", settings.app_name)


@app.get("/")
async def root():
    return {"name": settings.app_name, "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Ready once Supabase is configured"""
    if not settings.supabase_url or not settings.supabase_key:
        return JSONResponse(status_code=503, content={"status": "not ready", "reason": "supabase not configured"})
    return {"status": "ready"}
