import uvicorn
from kioskbooth.config import settings

if __name__ == "__main__":
    print("🚀 Starting KioskBooth server...")
    print(f"📸 Camera device: {settings.camera_device_id}")
    print(f"🌐 Kiosk API at: http://{settings.host}:{settings.port}")
    print(f"📁 Frames and GIFs will be saved to: {settings.photos_dir}")
    print(f"☁️  Backend: {settings.backend_url}" + (" (test mode, uploads off)" if settings.test_mode else ""))
    print("\n🎯 Session flow:")
    print(f"   - {settings.total_shots} shots, {settings.countdown_seconds}s countdown, "
          f"{settings.interval_seconds}s between shots")
    print("   - Pick a frame template and your favourite shots")
    print("   - 6-slot strips: pick 3, each printed twice side by side")
    print("   - Final frame saved, printed and shared, plus an animated GIF")
    print("\n🛑 Press Ctrl+C to stop the server\n")

    uvicorn.run(
        "kioskbooth.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
