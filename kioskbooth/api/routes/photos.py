from fastapi import APIRouter, HTTPException, Depends
from fastapi.responses import FileResponse
import os
from datetime import datetime

from kioskbooth.services.photo import PhotoService
from kioskbooth.api.dependencies import get_photo_service

router = APIRouter(prefix="/photos", tags=["photos"])

MEDIA_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
}


@router.get("/{filename}")
async def download_photo(filename: str, photo_service: PhotoService = Depends(get_photo_service)):
    if os.path.basename(filename) != filename:
        raise HTTPException(status_code=404, detail="Photo not found")

    filepath = os.path.join(photo_service.photos_dir, filename)
    if not os.path.exists(filepath):
        raise HTTPException(status_code=404, detail="Photo not found")

    media_type = MEDIA_TYPES.get(os.path.splitext(filename)[1].lower(), "application/octet-stream")
    return FileResponse(filepath, media_type=media_type, filename=filename)


@router.get("/")
async def list_photos(photo_service: PhotoService = Depends(get_photo_service)):
    photos = []

    if os.path.exists(photo_service.photos_dir):
        for filename in os.listdir(photo_service.photos_dir):
            if filename.lower().endswith(tuple(MEDIA_TYPES)):
                filepath = os.path.join(photo_service.photos_dir, filename)
                stat = os.stat(filepath)
                photos.append({
                    "filename": filename,
                    "size": stat.st_size,
                    "created": datetime.fromtimestamp(stat.st_ctime).isoformat(),
                    "download_url": f"/api/photos/{filename}"
                })

    return {"photos": sorted(photos, key=lambda x: x["created"], reverse=True)}
