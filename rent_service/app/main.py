import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from shared.core.config import settings
from shared.core.database import rent_engine, Base, RentSessionLocal
from shared.exception_handler import setup_exception_handlers
from shared.utils.logging_config import configure_logging
from shared.wrappers.response_wrapper import JsonResponseMiddleware

from .models.parties import owners, tenants, properties, rentals
from .models.payments import payment_schedules, payments
from .crud.scheduler.scheduler_service import process_late_payments
from .router.payments import payment_schedules_router, payments_router

configure_logging()
logger = logging.getLogger(__name__)


async def run_late_sweep(interval_minutes: int):
    while True:
        await asyncio.sleep(interval_minutes * 60)
        try:
            updated = await asyncio.to_thread(process_late_payments, RentSessionLocal())
        except Exception:
            # keep the timer alive, the next tick retries
            logger.exception("Periodic late sweep crashed")
            continue
        logger.debug("Periodic late sweep updated %d payments", updated)


@asynccontextmanager
async def lifespan(app: FastAPI):
    task = None
    if settings.LATE_SWEEP_INTERVAL_MINUTES > 0:
        task = asyncio.create_task(
            run_late_sweep(settings.LATE_SWEEP_INTERVAL_MINUTES))
        logger.info("Late payment sweep scheduled every %d minutes",
                    settings.LATE_SWEEP_INTERVAL_MINUTES)
    yield
    if task:
        task.cancel()


app = FastAPI(title="Rent Service API", lifespan=lifespan)

# Create all tables
Base.metadata.create_all(bind=rent_engine)

origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(JsonResponseMiddleware)
setup_exception_handlers(app)

# Include routers
app.include_router(payment_schedules_router.router)
app.include_router(payments_router.router)
