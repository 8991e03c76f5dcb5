from fastapi import APIRouter, HTTPException, Depends

from kioskbooth.errors import DeviceError
from kioskbooth.models.session import CameraDeviceRequest
from kioskbooth.services.camera import CameraService
from kioskbooth.api.dependencies import get_camera_service

router = APIRouter(prefix="/camera", tags=["camera"])


@router.get("/devices")
async def list_devices(camera_service: CameraService = Depends(get_camera_service)):
    return {"devices": camera_service.list_devices(), "active_device_id": camera_service.device_id}


@router.post("/device")
async def switch_device(
        request: CameraDeviceRequest,
        camera_service: CameraService = Depends(get_camera_service)
):
    try:
        camera_service.switch_device(request.device_id)
    except DeviceError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {"success": True, "active_device_id": camera_service.device_id}
