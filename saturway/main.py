"""Main FastAPI application for the Saturway backend."""
from fastapi import FastAPI, Request

from saturway.api.routes.ai import router as ai_router
from saturway.api.routes.auth import router as auth_router
from saturway.api.routes.energy import router as energy_router
from saturway.api.routes.habit import router as habit_router
from saturway.api.routes.mood import router as mood_router
from saturway.api.routes.review import router as review_router
from saturway.api.routes.task import router as task_router
from saturway.api.routes.user import router as user_router
from saturway.core.config import settings
from saturway.core.errors import register_exception_handlers
from saturway.core.logging import configure_logging
from saturway.core.middleware import RequestIDMiddleware
from saturway.observability.client import init_opik
from saturway.observability.tracing import trace

API_PREFIX = "/api"

configure_logging(log_level=settings.log_level)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(RequestIDMiddleware)
register_exception_handlers(app)
app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(user_router, prefix=API_PREFIX)
app.include_router(task_router, prefix=API_PREFIX)
app.include_router(mood_router, prefix=API_PREFIX)
app.include_router(energy_router, prefix=API_PREFIX)
app.include_router(habit_router, prefix=API_PREFIX)
app.include_router(review_router, prefix=API_PREFIX)
app.include_router(ai_router, prefix=API_PREFIX)


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}
