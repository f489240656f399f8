# server/tools/account.py
from typing import List

from server.tools.base import NoArgsIn, ToolSpec


def account_tools(image_service) -> List[ToolSpec]:
    async def get_usage(args: NoArgsIn):
        return await image_service.get_usage()

    async def get_settings(args: NoArgsIn):
        return await image_service.get_settings()

    return [
        ToolSpec(
            name="get_usage",
            description="Get current usage statistics for your img-src.io account. "
            "Shows uploads, storage, bandwidth, and API request usage against your plan limits.",
            input_model=NoArgsIn,
            handler=get_usage,
        ),
        ToolSpec(
            name="get_settings",
            description="Get your img-src.io account settings. Returns username, plan, "
            "default image settings, and account statistics.",
            input_model=NoArgsIn,
            handler=get_settings,
        ),
    ]
