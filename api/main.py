from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from core import db
from core import logging as app_logging
from core.config import Settings
from core.migrations import apply_migrations
from core.song_info import SongInfoClient
from songs import router as songs_router

logger = app_logging.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings.from_env()
    app_logging.configure(settings.log_level, settings.log_file)

    # Initialize the DB pool once per process.
    await db.init_pool(
        settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        command_timeout=settings.db_command_timeout_s,
    )
    try:
        await apply_migrations()
        app.state.settings = settings
        app.state.song_info_client = SongInfoClient(
            settings.song_info_url,
            timeout_s=settings.song_info_timeout_s,
        )
        yield
    finally:
        await db.close_pool()


app = FastAPI(title="Songs Library", lifespan=lifespan)

app.include_router(songs_router.router, tags=["songs"])
app.add_exception_handler(RequestValidationError, songs_router.request_validation_handler)


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


def main() -> None:
    settings = Settings.from_env()
    app_logging.configure(settings.log_level, settings.log_file)
    logger.info("Starting API on %s:%d", settings.api_host, settings.api_port)
    uvicorn.run("main:app", host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
