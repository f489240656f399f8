# server/prompts.py
from typing import Any, Dict, List, Optional

PROMPTS: List[Dict[str, Any]] = [
    {
        "name": "upload-and-share",
        "description": "Upload an image and get shareable CDN URLs",
        "arguments": [
            {"name": "imageUrl", "description": "URL of image to upload", "required": True},
            {"name": "width", "description": "Resize width (optional)", "required": False},
        ],
    },
    {
        "name": "check-usage",
        "description": "Check account usage and storage status",
    },
    {
        "name": "find-images",
        "description": "Search for images by keyword",
        "arguments": [{"name": "query", "description": "Search keyword", "required": True}],
    },
]


def upload_and_share_text(image_url: Optional[str] = None, width: Optional[str] = None) -> str:
    resize = f" and resize to {width}px width" if width else ""
    return f"Upload this image: {image_url or '[image URL]'}{resize}. Then give me the CDN URL."


def check_usage_text() -> str:
    return "Check my img-src.io usage stats and let me know if I'm close to any limits."


def find_images_text(query: Optional[str] = None) -> str:
    return f'Find all my images matching "{query or "[keyword]"}" and show me the results.'


def render_prompt(name: str, args: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """`prompts/get` result body. Unknown names raise KeyError."""
    args = args or {}
    if name == "upload-and-share":
        text = upload_and_share_text(args.get("imageUrl"), args.get("width"))
    elif name == "check-usage":
        text = check_usage_text()
    elif name == "find-images":
        text = find_images_text(args.get("query"))
    else:
        raise KeyError(f"Unknown prompt: {name}")
    return {"messages": [{"role": "user", "content": {"type": "text", "text": text}}]}
