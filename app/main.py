# app/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import get_settings
from app.core.database import Base, engine
from app.core.errors import register_error_handlers
from app.directory.routes import router as directory_router
from app.notification.routes import router as alert_router
from app.notification.scheduler import get_alert_scheduler
from app.ticket.routes import router as ticket_router

Base.metadata.create_all(bind=engine)

settings = get_settings()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    scheduler = get_alert_scheduler() if settings.SCHEDULER_ENABLED else None
    if scheduler:
        scheduler.start()
    try:
        yield
    finally:
        if scheduler:
            scheduler.shutdown()


app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESC,
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Routers
app.include_router(ticket_router)
app.include_router(alert_router)
app.include_router(directory_router)

@app.get("/health", tags=["Health"])
def health():
    return {"status": "ok"}
