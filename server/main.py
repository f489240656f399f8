# server/main.py
import json

from fastmcp import FastMCP
from fastmcp.exceptions import ResourceError

from imgsrc.config import Settings
from imgsrc.di import Container, build_container
from imgsrc.logging import configure_logging
from server.prompts import check_usage_text, find_images_text, upload_and_share_text
from server.registry import build_tool_registry, register_into_fastmcp


def register_resources(mcp: FastMCP, image_service) -> None:
    @mcp.resource(
        "imgsrc://images",
        name="images",
        description="The first 100 images in the account, one resource entry per image.",
        mime_type="application/json",
    )
    async def image_index() -> str:
        return json.dumps(await image_service.image_resources(), indent=2)

    @mcp.resource("imgsrc://images/{image_id}", mime_type="application/json")
    async def image_metadata(image_id: str) -> str:
        text = await image_service.image_resource(image_id)
        if text is None:
            raise ResourceError(f"Image not available: {image_id}")
        return text


def register_prompts(mcp: FastMCP) -> None:
    @mcp.prompt(name="upload-and-share", description="Upload an image and get shareable CDN URLs")
    def upload_and_share(imageUrl: str, width: str | None = None) -> str:
        return upload_and_share_text(imageUrl, width)

    @mcp.prompt(name="check-usage", description="Check account usage and storage status")
    def check_usage() -> str:
        return check_usage_text()

    @mcp.prompt(name="find-images", description="Search for images by keyword")
    def find_images(query: str) -> str:
        return find_images_text(query)


def create_app(container: Container | None = None) -> FastMCP:
    """
    Build DI container, create FastMCP host, and register tools.
    Keep the server (protocol) separate from tool/service logic.
    """
    container = container or build_container()

    mcp = FastMCP("img-src-mcp", version="1.0.0")

    # Register tools (thin adapters)
    register_into_fastmcp(mcp, build_tool_registry(container))
    register_resources(mcp, container.image_service)
    register_prompts(mcp)

    return mcp


if __name__ == "__main__":
    configure_logging(Settings().LOG_LEVEL)
    app = create_app()
    # stdio transport: client (agent/IDE) launches this process and speaks JSON-RPC on stdin/stdout
    app.run(transport="stdio")
