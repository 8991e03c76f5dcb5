from fastapi import APIRouter, Depends

from kioskbooth.errors import UnsupportedSlotConfiguration
from kioskbooth.models.template import FrameTemplate
from kioskbooth.services.catalog import TemplateCatalog
from kioskbooth.services.slots import required_selection_count
from kioskbooth.api.dependencies import get_template_catalog

router = APIRouter(prefix="/templates", tags=["templates"])


def _describe(template: FrameTemplate) -> dict:
    try:
        required = required_selection_count(template.slot_count)
    except UnsupportedSlotConfiguration:
        required = None
    return {
        "id": template.id,
        "name": template.name,
        "image_url": template.image_url,
        "layout": template.config.kind,
        "frame_slots": template.slot_count,
        "required_selection": required,
    }


@router.get("/")
async def list_templates(catalog: TemplateCatalog = Depends(get_template_catalog)):
    templates = await catalog.fetch_templates()
    return {"templates": [_describe(template) for template in templates]}
