from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kioskbooth.config import settings
from kioskbooth.app_logging import configure_logging
from kioskbooth.api.routes import session, photos, templates, camera, websocket
from kioskbooth.services.camera import camera_service
from kioskbooth.services.catalog import template_catalog
from kioskbooth.services.printing import print_service
from kioskbooth.services.session import session_manager
from kioskbooth.services.uploads import upload_service

configure_logging(settings.debug)

app = FastAPI(
    title=settings.app_name,
    description=settings.app_description,
    debug=settings.debug
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(session.router, prefix="/api")
app.include_router(photos.router, prefix="/api")
app.include_router(templates.router, prefix="/api")
app.include_router(camera.router, prefix="/api")
app.include_router(websocket.router)

@app.on_event("startup")
async def startup_event():
    camera_service.initialize()

@app.on_event("shutdown")
async def shutdown_event():
    session_manager.reset()
    camera_service.cleanup()
    await upload_service.close()
    await template_catalog.close()

@app.get("/health")
async def health_check():
    session = session_manager.current()
    return {
        "status": "healthy",
        "camera_active": camera_service.is_active,
        "camera_device_id": camera_service.device_id,
        "printer_enabled": print_service.enabled,
        "uploads_enabled": upload_service.enabled,
        "session_phase": session.phase.value if session else None,
    }

