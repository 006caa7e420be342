import logging
import os

from fastapi import FastAPI

from booking_engine.api.routes.routes import router
from booking_engine.infrastructure.db import models  # noqa: F401  registers tables
from booking_engine.infrastructure.db.session import init_db

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Booking Lifecycle Engine")

app.include_router(router)


@app.on_event("startup")
def on_startup() -> None:
    init_db()
