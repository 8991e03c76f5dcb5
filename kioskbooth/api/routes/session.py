from fastapi import APIRouter, HTTPException, Depends
import logging
import os

from kioskbooth.models.session import (
    SessionCreateRequest, PhotoSelectionRequest, TemplateSelectionRequest,
    SessionCreateResponse, SessionStatusResponse, CompositePreviewResponse,
    SessionFinalizeResponse, PrintResponse,
)
from kioskbooth.models.template import FrameTemplate
from kioskbooth.errors import (
    DeviceError, PersistenceError, SelectionError, TemplateLoadError, UnsupportedSlotConfiguration,
)
from kioskbooth.services.catalog import TemplateCatalog
from kioskbooth.services.photo import PhotoService
from kioskbooth.services.printing import PrintService
from kioskbooth.services.runner import Scheduler
from kioskbooth.services.session import BoothSession, SessionManager
from kioskbooth.services.slots import validate_selection
from kioskbooth.services.uploads import UploadService
from kioskbooth.services.websocket import WebSocketManager
from kioskbooth.api.dependencies import (
    get_photo_service, get_print_service, get_scheduler, get_session_manager,
    get_template_catalog, get_upload_service, get_websocket_manager,
)
from kioskbooth.config import settings

router = APIRouter(prefix="/session", tags=["session"])
logger = logging.getLogger(__name__)


def _require_session(manager: SessionManager) -> BoothSession:
    session = manager.current()
    if session is None:
        raise HTTPException(status_code=404, detail="No active session")
    return session


def _require_capture(manager: SessionManager) -> BoothSession:
    session = _require_session(manager)
    if not session.capture_complete:
        raise HTTPException(status_code=400, detail="Photo capture not complete yet")
    return session


async def _resolve_template(session: BoothSession, catalog: TemplateCatalog) -> FrameTemplate:
    if session.template is None:
        session.template = await catalog.default_template()
    if session.template is None:
        raise HTTPException(status_code=400, detail="No frame template available")
    return session.template


@router.post("/create", response_model=SessionCreateResponse)
async def create_session(
        request: SessionCreateRequest,
        manager: SessionManager = Depends(get_session_manager),
        scheduler: Scheduler = Depends(get_scheduler)
):
    try:
        session = manager.create(request, scheduler)
    except UnsupportedSlotConfiguration as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DeviceError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return SessionCreateResponse(
        session_id=session.session_id,
        session_code=session.session_code,
        phase=session.phase.value,
        total_shots=session.capture.total_shots,
        countdown_seconds=session.capture.countdown_seconds,
        interval_seconds=session.capture.interval_seconds,
    )


@router.get("/status", response_model=SessionStatusResponse)
async def get_session_status(
        manager: SessionManager = Depends(get_session_manager),
        photo_service: PhotoService = Depends(get_photo_service)
):
    session = manager.current()
    if session is None:
        return SessionStatusResponse(
            session_id=None,
            photo_count=0,
            capture_complete=False,
            selection_complete=False
        )

    machine = session.machine
    try:
        required = session.required_selection
    except UnsupportedSlotConfiguration:
        required = 0

    return SessionStatusResponse(
        session_id=session.session_id,
        session_code=session.session_code,
        phase=session.phase.value,
        current_shot=min(machine.current_shot, session.capture.total_shots) if machine else 0,
        total_shots=session.capture.total_shots,
        countdown=machine.countdown if machine else None,
        message=machine.message if machine else "",
        photo_count=len(machine.photos) if machine else 0,
        capture_complete=session.capture_complete,
        required_selection=required,
        selected_photos=session.selected_indices,
        selection_complete=session.selection_complete,
        template_id=session.template.id if session.template else None,
        last_error=session.last_error,
        photos=[photo_service.to_base64(p.image) for p in session.photos] if session.capture_complete else []
    )


@router.post("/cancel")
async def cancel_session(manager: SessionManager = Depends(get_session_manager)):
    session = _require_session(manager)
    manager.discard(session)
    return {"success": True}


@router.post("/retake")
async def retake_photos(
        manager: SessionManager = Depends(get_session_manager),
        scheduler: Scheduler = Depends(get_scheduler)
):
    session = _require_session(manager)
    try:
        manager.start_capture(session, scheduler)
    except DeviceError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {"success": True, "phase": session.phase.value}


@router.post("/select-template")
async def select_template(
        request: TemplateSelectionRequest,
        manager: SessionManager = Depends(get_session_manager),
        catalog: TemplateCatalog = Depends(get_template_catalog)
):
    session = _require_session(manager)
    template = await catalog.get(request.template_id)
    if template is None:
        raise HTTPException(status_code=404, detail="Template not found")

    previous, session.template = session.template, template
    try:
        required = session.required_selection
    except UnsupportedSlotConfiguration as e:
        session.template = previous
        raise HTTPException(status_code=400, detail=str(e))
    if len(session.selected_indices) != required:
        session.selected_indices = []

    logger.info("Session %s uses template %s (%d photos)", session.session_id, template.id, required)
    return {"success": True, "template_id": template.id, "required_selection": required}


@router.post("/select-photos")
async def select_photos(
        request: PhotoSelectionRequest,
        manager: SessionManager = Depends(get_session_manager),
        websocket_manager: WebSocketManager = Depends(get_websocket_manager)
):
    session = _require_capture(manager)
    try:
        indices = validate_selection(request.selected_indices, len(session.photos), session.required_selection)
    except (SelectionError, UnsupportedSlotConfiguration) as e:
        raise HTTPException(status_code=400, detail=str(e))

    session.selected_indices = indices
    logger.info("Selected photos %s for session %s", indices, session.session_id)
    await websocket_manager.broadcast({
        "type": "selection_complete",
        "session_id": session.session_id,
        "selected_indices": indices
    })

    return {"success": True, "selected_indices": indices}


@router.post("/preview", response_model=CompositePreviewResponse)
async def preview_composite(
        manager: SessionManager = Depends(get_session_manager),
        catalog: TemplateCatalog = Depends(get_template_catalog),
        photo_service: PhotoService = Depends(get_photo_service)
):
    session = _require_capture(manager)
    template = await _resolve_template(session, catalog)

    try:
        background = await catalog.load_background(template)
        photos = photo_service.prepare_photos(session.photos)
        composite = photo_service.compose(session.selected_photos(photos), template, background, session.slot_count)
    except (SelectionError, UnsupportedSlotConfiguration) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TemplateLoadError as e:
        raise HTTPException(status_code=502, detail=str(e))

    session.composite = composite
    return CompositePreviewResponse(success=True, template_id=template.id, collage=photo_service.to_base64(composite))


@router.post("/finalize", response_model=SessionFinalizeResponse)
async def finalize_session(
        manager: SessionManager = Depends(get_session_manager),
        catalog: TemplateCatalog = Depends(get_template_catalog),
        photo_service: PhotoService = Depends(get_photo_service),
        uploads: UploadService = Depends(get_upload_service),
        printer: PrintService = Depends(get_print_service)
):
    session = _require_capture(manager)
    template = await _resolve_template(session, catalog)

    logger.info("Finalizing session %s with template %s", session.session_id, template.id)
    try:
        background = await catalog.load_background(template)
        photos = photo_service.prepare_photos(session.photos)
        composite = photo_service.compose(session.selected_photos(photos), template, background, session.slot_count)
    except (SelectionError, UnsupportedSlotConfiguration) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TemplateLoadError as e:
        raise HTTPException(status_code=502, detail=str(e))

    frame_data = photo_service.encode_jpeg(composite)
    animation_data = photo_service.create_animation(photos)
    try:
        filename = photo_service.save_photo(frame_data)
    except PersistenceError as e:
        logger.error("Local save failed for session %s: %s", session.session_id, e)
        raise HTTPException(status_code=500, detail=str(e))

    # the saved frame is enough to print and download
    try:
        animation_filename = photo_service.save_photo(animation_data, filename=os.path.splitext(filename)[0] + ".gif")
    except PersistenceError as e:
        logger.warning("GIF save failed for session %s: %s", session.session_id, e)
        animation_filename = None

    session.composite = composite
    session.saved_filename = filename

    printed = False
    if printer.enabled and session.can_print:
        printed = await printer.print_file(os.path.join(photo_service.photos_dir, filename))
        if printed:
            session.prints_done += 1

    qr_code_url = None
    offline = False
    if not uploads.enabled:
        logger.info("Test mode: skipping background upload")
    elif not session.session_code:
        offline = True
    else:
        for photo in photos:
            uploads.upload_photo(session.session_code, photo_service.encode_jpeg(photo_service.watermark(photo.image)),
                                 photo.sequence)
        uploads.upload_frame(session.session_code, frame_data)
        uploads.upload_gif(session.session_code, animation_data)

        qr_code_url = await uploads.complete_session(session.session_code, timeout=settings.completion_timeout)
        offline = qr_code_url is None

    return SessionFinalizeResponse(
        success=True,
        filename=filename,
        download_url=f"/api/photos/{filename}",
        collage=photo_service.to_base64(composite),
        animation_filename=animation_filename,
        qr_code_url=qr_code_url,
        offline=offline,
        printed=printed
    )


@router.post("/print", response_model=PrintResponse)
async def print_frame(
        manager: SessionManager = Depends(get_session_manager),
        photo_service: PhotoService = Depends(get_photo_service),
        printer: PrintService = Depends(get_print_service)
):
    session = _require_session(manager)
    if session.saved_filename is None:
        raise HTTPException(status_code=400, detail="Session not finalized yet")
    if not session.can_print:
        raise HTTPException(status_code=409, detail="Print limit reached")

    if not await printer.print_file(os.path.join(photo_service.photos_dir, session.saved_filename)):
        raise HTTPException(status_code=502, detail="Print failed")
    session.prints_done += 1

    return PrintResponse(success=True, prints_done=session.prints_done, max_prints=session.max_prints)


@router.delete("/reset")
async def reset_session(manager: SessionManager = Depends(get_session_manager)):
    manager.reset()
    return {"success": True}
