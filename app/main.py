from contextlib import asynccontextmanager
from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from app.core import (
    celery,
    config,
    database,
    event_bus,
    exception_handlers,
    redis,
)
from app.core.websocket_manager import websocket_manager
from app.domains import auth, chat, connections, missions, nucleus, places, presence, users

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    celery.init_celery()
    event_bus.init_event_bus()
    await database.init_db()
    connections.register_event_handlers()
    nucleus.register_event_handlers()
    chat.register_event_handlers()
    presence.register_event_handlers()
    missions.register_event_handlers()
    places.register_event_handlers()
    await websocket_manager.start()
    yield
    await websocket_manager.stop()


app = FastAPI(title="Linka Nucleus Backend", version=VERSION, lifespan=lifespan)

exception_handlers.setup_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(connections.router, prefix="/api/connections", tags=["Connections"])
app.include_router(nucleus.router, prefix="/api/nucleus", tags=["Nucleus"])
app.include_router(missions.router, prefix="/api/nucleus", tags=["Missions"])
app.include_router(chat.router, prefix="/api/messages", tags=["Messages"])
app.include_router(places.router, prefix="/api/places", tags=["Places"])
app.include_router(presence.ws_router, prefix="/api", tags=["Presence WS"])


@app.get("/health")
async def health():
    services = {
        "database": await database.check_connection(),
        "redis": await redis.check_connection(),
        "rabbitmq": await celery.check_connection(),
    }
    status = "healthy" if all(services.values()) else "degraded"
    return {
        "status": status,
        "services": services,
        "version": VERSION,
        "environment": config.settings.ENVIRONMENT.value,
        "websockets": websocket_manager.get_connection_stats(),
    }
