"""
Application factory for the event registration API.

``create_app`` wires the settings, the Redis client and the
``RegistrationService`` into a FastAPI instance. Serve it with::

    uvicorn events_api.main:create_app --factory

or through the ``events-api`` console script.
"""

import redis
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from events_api.core.config import Settings
from events_api.core.errors import register_exception_handlers
from events_api.core.logging_config import setup_logging
from events_api.core.rate_limit import make_limiter, rate_limit_exceeded_handler
from events_api.core.redis_client import get_redis_client
from events_api.database.db import init_db, make_engine, make_session_factory
from events_api.routes import events
from events_api.services.registrations import RegistrationService


def create_app(
    settings: Settings | None = None,
    *,
    service: RegistrationService | None = None,
    redis_client: redis.Redis | None = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    if service is None:
        if redis_client is None:
            redis_client = get_redis_client(settings.redis_url)
        engine = make_engine(settings.database_url)
        init_db(engine)
        service = RegistrationService(
            make_session_factory(engine),
            redis_client,
            lock_timeout=settings.lock_timeout,
            lock_blocking_timeout=settings.lock_blocking_timeout,
        )

    app = FastAPI(title=settings.project_name)
    app.state.registration_service = service

    app.state.limiter = make_limiter(settings)
    app.add_middleware(SlowAPIMiddleware)

    # Configure CORS; added last so it also wraps rate-limited responses
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    @app.get("/")
    def root():
        return {"message": "Event Management API is running"}

    app.include_router(events.router)
    return app


def main() -> None:
    settings = Settings.from_env()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
