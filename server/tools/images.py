# server/tools/images.py
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from server.tools.base import ToolSpec


class UploadImageIn(BaseModel):
    model_config = {"extra": "forbid"}

    url: Optional[str] = Field(
        None, description="URL of the image to upload. The image will be fetched and uploaded."
    )
    data: Optional[str] = Field(
        None, description="Base64-encoded image data. Use this for local file uploads."
    )
    mimeType: Optional[str] = Field(
        None,
        description="MIME type of the image (e.g., 'image/png', 'image/jpeg'). "
        "Required when using data parameter.",
    )
    filepath: Optional[str] = Field(
        None,
        description="Optional path to store the image (e.g., 'photos/vacation/beach.jpg'). "
        "If not provided, the original filename from the URL will be used.",
    )

    @model_validator(mode="after")
    def _source_present(self):
        if not (self.url or self.data):
            raise ValueError("Either url or data is required")
        if self.data and not self.mimeType:
            raise ValueError("mimeType is required when using data")
        return self


class ListImagesIn(BaseModel):
    model_config = {"extra": "forbid"}

    folder: Optional[str] = Field(
        None, description="Folder path to list (e.g., 'photos/vacation'). Leave empty to list root folder."
    )
    limit: Optional[int] = Field(
        None, ge=1, le=100, description="Maximum number of items to return (default: 50, max: 100)."
    )
    offset: Optional[int] = Field(
        None, ge=0, description="Number of items to skip for pagination (default: 0)."
    )


class SearchImagesIn(BaseModel):
    model_config = {"extra": "forbid"}

    query: str = Field(..., min_length=1, description="Search query to match against filenames and paths.")
    limit: Optional[int] = Field(
        None, ge=1, le=100, description="Maximum number of results to return (default: 20, max: 100)."
    )
    offset: Optional[int] = Field(
        None, ge=0, description="Number of results to skip for pagination (default: 0)."
    )


class ImageIdIn(BaseModel):
    model_config = {"extra": "forbid"}

    id: str = Field(..., min_length=1, description="The image ID (UUID format).")


def image_tools(image_service) -> List[ToolSpec]:
    """
    Thin tool adapters:
    - inputs already validated by the Pydantic model
    - the service does the work (URL guard, path sanitizing, API call)
    """

    async def upload_image(args: UploadImageIn):
        return await image_service.upload_image(
            url=args.url, data=args.data, mime_type=args.mimeType, filepath=args.filepath
        )

    async def list_images(args: ListImagesIn):
        return await image_service.list_images(args.folder, args.limit, args.offset)

    async def search_images(args: SearchImagesIn):
        return await image_service.search_images(args.query, args.limit, args.offset)

    async def get_image(args: ImageIdIn):
        return await image_service.get_image(args.id)

    async def delete_image(args: ImageIdIn):
        return await image_service.delete_image(args.id)

    return [
        ToolSpec(
            name="upload_image",
            description="Upload an image to img-src.io from URL or base64 data. Supports JPEG, PNG, "
            "WebP, GIF, AVIF, HEIC, and more. Images are automatically deduplicated by content "
            "hash. Returns the image metadata including CDN URLs for different formats.",
            input_model=UploadImageIn,
            handler=upload_image,
        ),
        ToolSpec(
            name="list_images",
            description="List images in your img-src.io account. Supports pagination and folder "
            "browsing. Returns images and subfolders in the specified path.",
            input_model=ListImagesIn,
            handler=list_images,
        ),
        ToolSpec(
            name="search_images",
            description="Search for images by filename or path. Performs a fuzzy search across all "
            "your images. Returns matching images with their metadata and CDN URLs.",
            input_model=SearchImagesIn,
            handler=search_images,
        ),
        ToolSpec(
            name="get_image",
            description="Get detailed metadata for a specific image by its ID. Returns full image "
            "information including dimensions, format, all associated paths, and CDN URLs.",
            input_model=ImageIdIn,
            handler=get_image,
        ),
        ToolSpec(
            name="delete_image",
            description="Delete an image by its ID. This permanently removes the image and all its "
            "paths from your account. The image will no longer be accessible via CDN URLs.",
            input_model=ImageIdIn,
            handler=delete_image,
        ),
    ]
