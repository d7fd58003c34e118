import asyncio
import logging
import time

from fastapi import FastAPI, Request
from fastapi.concurrency import asynccontextmanager

from controllers import schedule_controller
from core.config import get_settings
from core.logging_config import setup_logging
from db.session import get_engine, get_session_factory
from repos.schedule_repository import ScheduleRepository
from schemas.response import ResponseModel

settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    session_factory = get_session_factory()
    attempts = 0
    while attempts < settings.db_init_attempts:
        try:
            async with session_factory() as session:
                repo = ScheduleRepository(session)
                await repo.init_table()
                if settings.seed_defaults:
                    await repo.seed_default_async()
            break
        except Exception as exc:
            attempts += 1
            wait = 2 * attempts
            logger.warning("DB init attempt %s failed (%s); retrying in %ss", attempts, exc, wait)
            await asyncio.sleep(wait)
    else:
        logger.error("DB init failed after retries; app may not serve schedule endpoints")

    yield

    await get_engine().dispose()


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.include_router(schedule_controller.router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed = (time.perf_counter() - start) * 1000
    logger.info("%s %s -> %s (%.1fms)", request.method, request.url.path, response.status_code, elapsed)
    return response


@app.get("/", response_model=ResponseModel[None])
def read_root() -> ResponseModel[None]:
    return ResponseModel(status=200, message="Bus booking schedules", data=None)


@app.get("/health", response_model=ResponseModel[None])
def health_check() -> ResponseModel[None]:
    return ResponseModel(status=200, message="healthy", data=None)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000)
