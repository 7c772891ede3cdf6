import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reminder_service.observability.logger import init_sentry
from reminder_service.routes.health import router as health_router
from reminder_service.routes.photo import router as photo_router
from reminder_service.routes.reminders import router as reminders_router
from reminder_service.routes.scheduler import router as scheduler_router
from reminder_service.scheduler.service import start_scheduler, stop_scheduler

logger = logging.getLogger("reminder_service")
logging.basicConfig(level=logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_sentry()
    await start_scheduler()
    yield
    await stop_scheduler()


app = FastAPI(title="Choir Reminders", lifespan=lifespan)

# The app's web client calls send-photo directly from the browser
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

# Routes
app.include_router(reminders_router, tags=["reminders"])
app.include_router(photo_router, tags=["photo"])
app.include_router(scheduler_router, tags=["scheduler"])
app.include_router(health_router, tags=["health"])


@app.get("/")
def root():
    return {"status": "ok"}
