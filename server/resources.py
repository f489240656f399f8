# server/resources.py
import re
from typing import Any, Dict

from imgsrc.services.images import ImageService

IMAGE_URI = re.compile(r"^imgsrc://images/(.+)$")


async def list_resources_payload(image_service: ImageService) -> Dict[str, Any]:
    return {"resources": await image_service.image_resources()}


async def read_resource_payload(image_service: ImageService, uri: str) -> Dict[str, Any]:
    # Unknown URIs and API failures both read as empty
    match = IMAGE_URI.match(uri)
    if not match:
        return {"contents": []}
    text = await image_service.image_resource(match.group(1))
    if text is None:
        return {"contents": []}
    return {"contents": [{"uri": uri, "mimeType": "application/json", "text": text}]}
