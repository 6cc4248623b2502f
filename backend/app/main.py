from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from starlette.middleware.trustedhost import TrustedHostMiddleware

from app.core.config import settings
from app.core.error_handlers import setup_error_handlers
from app.core.logging import RequestIdMiddleware, setup_logging
from app.api.router import router

setup_logging(settings)

app = FastAPI(
    title="3 Patti Leaderboard",
    version="0.1.0",
)

allowed_hosts = [h.strip() for h in settings.ALLOWED_HOSTS.split(",") if h.strip()]
if not allowed_hosts:
    allowed_hosts = ["*"]
app.add_middleware(TrustedHostMiddleware, allowed_hosts=allowed_hosts)

cors_origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-Id"],
)
app.add_middleware(RequestIdMiddleware)


@app.middleware("http")
async def security_headers_middleware(request: Request, call_next):
    response: Response = await call_next(request)
    if settings.SECURITY_HEADERS_ENABLED:
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = "frame-ancestors 'none'; base-uri 'self'"
        if settings.ENV != "dev":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response

setup_error_handlers(app)
app.include_router(router, prefix="/api")

@app.get("/health")
def health():
    return {"ok": True, "service": "3 Patti Leaderboard API"}

@app.get("/")
def index():
    return {
        "message": "3 Patti Leaderboard API",
        "version": app.version,
        "endpoints": {
            "players": "/api/players",
            "games": "/api/games",
            "analytics": "/api/analytics",
            "auth": "/api/auth",
            "health": "/health",
        },
    }
