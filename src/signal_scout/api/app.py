import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from signal_scout.config import settings
from signal_scout.scheduler.jobs import setup_scheduler
from signal_scout.services import build_services

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting Signal Scout...")
    services = build_services(settings)
    app.state.services = services
    sched = setup_scheduler(services)
    sched.start()
    logger.info("Scheduler started with %d jobs", len(sched.get_jobs()))
    yield
    # Shutdown
    sched.shutdown()
    await services.close()
    logger.info("Scheduler shut down, search client closed.")


def create_app() -> FastAPI:
    app = FastAPI(title="Signal Scout", version="0.1.0", lifespan=lifespan)

    from signal_scout.api.routes.signals import router as signals_router

    app.include_router(signals_router)

    return app


app = create_app()


def main() -> None:
    import uvicorn

    config = uvicorn.Config(
        "signal_scout.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )
    server = uvicorn.Server(config)
    server.run()


if __name__ == "__main__":
    main()
