# photoforge/main.py
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from photoforge.config.settings import settings
from photoforge.delivery.api.render import router
from photoforge.domain.template_service import TemplateService
from photoforge.infrastructure.assets import AssetSource
from photoforge.infrastructure.downloader import Downloader
from photoforge.infrastructure.template_loader import KINDS, load_templates

logger = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.ready = False
    app.state.executor = ThreadPoolExecutor(max_workers=settings.CPU_WORKERS)
    app.state.downloader = Downloader(settings.DOWNLOADER_CONCURRENT, settings.DOWNLOADER_TIMEOUT)
    assets = AssetSource(app.state.downloader, settings.STATIC_ROOT)
    app.state.template_service = TemplateService(assets, app.state.executor)
    logger.info(f"Service '{settings.PROJECT_NAME}' starting (mode: {settings.ENVIRONMENT}).")
    logger.info(f"Shared ThreadPoolExecutor created with {settings.CPU_WORKERS} workers, "
                f"downloader limited to {settings.DOWNLOADER_CONCURRENT} concurrent requests.")

    for kind in KINDS:
        templates = await load_templates(assets, os.path.join(settings.TEMPLATES_DIR, kind), kind)
        setattr(app.state, f"{kind}_templates", templates)
    app.state.ready = True

    yield

    app.state.ready = False
    logger.info("Closing downloader and ThreadPoolExecutor...")
    await app.state.downloader.close()
    app.state.executor.shutdown(wait=True)
    logger.info("Service stopped.")


app = FastAPI(
    title="Photoforge",
    description="Declarative image composition service: product cards, QR codes and price frames",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": settings.PROJECT_NAME}


@app.get("/ready")
async def ready(request: Request):
    state = request.app.state
    if not getattr(state, "ready", False):
        return JSONResponse(status_code=503, content={"status": "starting"})
    return {
        "status": "ok",
        "templates": {kind: sorted(getattr(state, f"{kind}_templates")) for kind in KINDS},
    }
