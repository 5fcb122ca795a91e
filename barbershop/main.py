# barbershop/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import LOG_LEVEL
from .db import create_db_and_tables
from .errors import BookingError
from .routers import (
    admin_routes,
    appointments_routes,
    auth_routes,
    barbers_routes,
    catalog_routes,
    users_routes,
)

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    create_db_and_tables()
    yield


app = FastAPI(title="Barbershop Booking API", lifespan=lifespan)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    logger.info(f"{request.method} {request.url.path} -> {exc.code.value}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code.value, "detail": exc.detail},
    )


@app.get("/health")
def health_check():
    return {"status": "ok"}


app.include_router(auth_routes.router)
app.include_router(users_routes.router)
app.include_router(catalog_routes.router)
app.include_router(appointments_routes.router)
app.include_router(barbers_routes.router)
app.include_router(admin_routes.router)
