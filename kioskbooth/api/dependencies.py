import asyncio

from kioskbooth.services.camera import camera_service
from kioskbooth.services.catalog import template_catalog
from kioskbooth.services.photo import photo_service
from kioskbooth.services.printing import print_service
from kioskbooth.services.session import session_manager
from kioskbooth.services.uploads import upload_service
from kioskbooth.services.websocket import websocket_manager

def get_camera_service():
    return camera_service

def get_photo_service():
    return photo_service

def get_websocket_manager():
    return websocket_manager

def get_session_manager():
    return session_manager

def get_template_catalog():
    return template_catalog

def get_upload_service():
    return upload_service

def get_print_service():
    return print_service

async def get_scheduler():
    return asyncio.get_running_loop()
