# server/tools/cdn.py
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from server.tools.base import ToolSpec


class GetCdnUrlIn(BaseModel):
    model_config = {"extra": "forbid"}

    username: str = Field(..., min_length=1, description="The username who owns the image.")
    filepath: str = Field(..., min_length=1, description="The image filepath (e.g., 'photos/beach.jpg').")
    width: Optional[int] = Field(None, gt=0, description="Resize width in pixels.")
    height: Optional[int] = Field(None, gt=0, description="Resize height in pixels.")
    fit: Optional[Literal["cover", "contain", "fill", "scale-down"]] = Field(
        None, description="How to fit the image within the dimensions (default: contain)."
    )
    quality: Optional[int] = Field(None, ge=1, le=100, description="Image quality 1-100 (default: 80).")
    format: Optional[Literal["webp", "avif", "jpeg", "png"]] = Field(
        None, description="Output format. WebP is recommended for best compression."
    )


def cdn_tools(image_service) -> List[ToolSpec]:
    async def get_cdn_url(args: GetCdnUrlIn):
        return image_service.get_cdn_url(
            args.username,
            args.filepath,
            width=args.width,
            height=args.height,
            fit=args.fit,
            quality=args.quality,
            format=args.format,
        )

    return [
        ToolSpec(
            name="get_cdn_url",
            description="Generate a CDN URL for an image with optional transformations. "
            "Supports resizing, format conversion, and quality adjustment.",
            input_model=GetCdnUrlIn,
            handler=get_cdn_url,
        ),
    ]
