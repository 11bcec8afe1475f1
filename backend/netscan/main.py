# netscan/main.py
import logging
import time

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from netscan.config import settings
from netscan.core.bootstrap import Services, close_services, init_services
from netscan.api.v1.deps import services_dep
from netscan.api.v1.errors import register_exception_handlers
from netscan.api.v1.routers import auth, network

logger = logging.getLogger("uvicorn.error")

app = FastAPI(title=settings.APP_NAME)

# CORS (with Cookie)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

register_exception_handlers(app)

@app.on_event("startup")
async def on_startup():
    await init_services()

@app.on_event("shutdown")
async def on_shutdown():
    await close_services()

# REST
app.include_router(auth.router, prefix="/api/v1")
app.include_router(network.router, prefix="/api/v1")

@app.get("/healthz")
async def healthz(services: Services = Depends(services_dep)):
    return {
        "ok": True,
        "uptimeSec": round(time.monotonic() - services.started_at),
        "storage": services.storage.name,
        "users": await services.credentials.count(),
        "testRecords": await services.history.total(),
    }
