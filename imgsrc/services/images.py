# imgsrc/services/images.py
from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlencode, urlsplit

from imgsrc.services.apiclient import Failure, RequestClient
from imgsrc.services.fetcher import FetchError, ImageFetcher, too_large
from imgsrc.services.formatting import summarize_usage
from imgsrc.services.paths import sanitize_path, sanitize_username

logger = logging.getLogger(__name__)

RESOURCE_PREFIX = "imgsrc://images/"


def error_body(code: str, message: str) -> Dict[str, Any]:
    return {"error": {"code": code, "message": message}}


def _last_segment(path: Optional[str]) -> str:
    if not path:
        return ""
    return path.rsplit("/", 1)[-1]


def _query(**params: Any) -> str:
    qs = urlencode({k: v for k, v in params.items() if v})
    return f"?{qs}" if qs else ""


@dataclass
class ImageService:
    """
    Business logic behind the image tools. Every public method returns a
    JSON-serializable dict: ``{"success": True, ...}`` or ``{"error": {...}}``.
    """
    client: RequestClient
    fetcher: ImageFetcher
    max_image_size: int = 5 * 1024 * 1024
    cdn_base_url: str = "https://img-src.io"

    # ---------- Uploads ----------

    async def upload_image(
        self,
        url: Optional[str] = None,
        data: Optional[str] = None,
        mime_type: Optional[str] = None,
        filepath: Optional[str] = None,
    ) -> Dict[str, Any]:
        target = sanitize_path(filepath) if filepath else ""

        if data:
            try:
                content = base64.b64decode("".join(data.split()), validate=True)
            except (binascii.Error, ValueError):
                return error_body("INVALID_BASE64", "Failed to decode base64 data")
            content_type = mime_type or "application/octet-stream"
            ext = content_type.split("/", 1)[1] if "/" in content_type else "bin"
            filename = _last_segment(target) or f"image.{ext}"
        elif url:
            fetched = await self.fetcher.fetch(url)
            if isinstance(fetched, FetchError):
                return {"error": fetched.to_dict()}
            content = fetched.content
            content_type = mime_type or fetched.content_type or "application/octet-stream"
            filename = _last_segment(target) or _last_segment(urlsplit(url).path) or "image"
        else:
            return error_body("MISSING_INPUT", "Either url or data is required")

        if len(content) > self.max_image_size:
            return {"error": too_large(len(content), self.max_image_size).to_dict()}

        form: Dict[str, Any] = {"file": (filename, content, content_type)}
        if target:
            form["filepath"] = target

        outcome = await self.client.send("POST", "/api/v1/images", form, is_multipart=True)
        if isinstance(outcome, Failure):
            return {"error": outcome.error.to_dict()}

        image = outcome.payload
        deduplicated = isinstance(image, dict) and image.get("is_new") is False
        return {
            "success": True,
            "image": image,
            "message": (
                "Image uploaded (deduplicated - identical content already existed)"
                if deduplicated
                else "Image uploaded successfully"
            ),
        }

    # ---------- Browsing ----------

    async def list_images(
        self, folder: Optional[str] = None, limit: Optional[int] = None, offset: Optional[int] = None
    ) -> Dict[str, Any]:
        path = "/api/v1/images" + _query(folder=folder, limit=limit, offset=offset)
        outcome = await self.client.send("GET", path)
        if isinstance(outcome, Failure):
            return {"error": outcome.error.to_dict()}
        return {"success": True, **(outcome.payload or {})}

    async def search_images(
        self, query: str, limit: Optional[int] = None, offset: Optional[int] = None
    ) -> Dict[str, Any]:
        path = "/api/v1/images/search" + _query(q=query, limit=limit, offset=offset)
        outcome = await self.client.send("GET", path)
        if isinstance(outcome, Failure):
            return {"error": outcome.error.to_dict()}
        return {"success": True, **(outcome.payload or {})}

    async def get_image(self, image_id: str) -> Dict[str, Any]:
        outcome = await self.client.send("GET", f"/api/v1/images/{quote(image_id, safe='')}")
        if isinstance(outcome, Failure):
            return {"error": outcome.error.to_dict()}
        data = outcome.payload or {}
        return {
            "success": True,
            "id": data.get("id"),
            "metadata": data.get("metadata"),
            "urls": data.get("urls"),
            "visibility": data.get("visibility"),
            "_links": data.get("_links"),
        }

    async def delete_image(self, image_id: str) -> Dict[str, Any]:
        outcome = await self.client.send("DELETE", f"/api/v1/images/{quote(image_id, safe='')}")
        if isinstance(outcome, Failure):
            return {"error": outcome.error.to_dict()}
        return {"success": True, **(outcome.payload or {}), "message": "Image deleted successfully"}

    # ---------- Account ----------

    async def get_usage(self) -> Dict[str, Any]:
        outcome = await self.client.send("GET", "/api/v1/usage")
        if isinstance(outcome, Failure):
            return {"error": outcome.error.to_dict()}
        return summarize_usage(outcome.payload or {})

    async def get_settings(self) -> Dict[str, Any]:
        outcome = await self.client.send("GET", "/api/v1/settings")
        if isinstance(outcome, Failure):
            return {"error": outcome.error.to_dict()}
        return {"success": True, "settings": (outcome.payload or {}).get("settings")}

    # ---------- CDN ----------

    def get_cdn_url(
        self,
        username: str,
        filepath: str,
        width: Optional[int] = None,
        height: Optional[int] = None,
        fit: Optional[str] = None,
        quality: Optional[int] = None,
        format: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Build a transformation URL. Pure: no API call is made."""
        clean_path = sanitize_path(filepath)
        clean_user = sanitize_username(username)
        if not clean_user:
            return error_body("INVALID_USERNAME", "Username is empty after sanitization")

        # Only the last extension is swapped: a.tar.gz -> a.tar.<fmt>
        dot = clean_path.rfind(".")
        base = clean_path[:dot] if dot > 0 else clean_path
        ext = format or "webp"

        url = (
            f"{self.cdn_base_url.rstrip('/')}/i/{clean_user}/{base}.{ext}"
            + _query(w=width, h=height, fit=fit, q=quality)
        )
        return {
            "success": True,
            "url": url,
            "parameters": {
                "username": clean_user,
                "filepath": clean_path,
                "width": width,
                "height": height,
                "fit": fit or "contain",
                "quality": quality or 80,
                "format": ext,
            },
        }

    # ---------- MCP resources ----------

    async def image_resources(self) -> List[Dict[str, Any]]:
        outcome = await self.client.send("GET", "/api/v1/images?limit=100")
        if isinstance(outcome, Failure):
            logger.warning("resource listing failed: %s", outcome.error.code)
            return []
        images = (outcome.payload or {}).get("images") or []
        return [
            {
                "uri": f"{RESOURCE_PREFIX}{img.get('id')}",
                "name": img.get("original_filename"),
                "mimeType": "image/*",
                "description": f"Image: {', '.join(img.get('paths') or [])}",
            }
            for img in images
        ]

    async def image_resource(self, image_id: str) -> Optional[str]:
        """Metadata for one image as pretty JSON, or None when unavailable."""
        outcome = await self.client.send("GET", f"/api/v1/images/{quote(image_id, safe='')}")
        if isinstance(outcome, Failure):
            return None
        return json.dumps(outcome.payload, indent=2)
