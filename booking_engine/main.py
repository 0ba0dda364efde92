# booking_engine/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from booking_engine import config
from booking_engine.db import init_db
from booking_engine.errors import BookingEngineError
from booking_engine.routers.appointments_routes import router as appointments_router
from booking_engine.routers.barbers_routes import router as barbers_router
from booking_engine.routers.pricing_routes import router as pricing_router
from booking_engine.routers.schedule_routes import router as schedule_router
from booking_engine.routers.services_routes import router as services_router

# Configure logging
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    init_db()
    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Barber Booking Engine", version="1.0.0", lifespan=lifespan)


@app.exception_handler(BookingEngineError)
async def booking_error_handler(request: Request, exc: BookingEngineError):
    logger.debug(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.get("/health")
def health_check():
    return {"status": "ok"}


app.include_router(barbers_router)
app.include_router(services_router)
app.include_router(schedule_router)
app.include_router(pricing_router)
app.include_router(appointments_router)
