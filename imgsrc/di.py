# imgsrc/di.py
from dataclasses import dataclass

import httpx

from imgsrc.config import ClientConfig, Settings
from imgsrc.services.apiclient import RequestClient
from imgsrc.services.fetcher import ImageFetcher
from imgsrc.services.images import ImageService


@dataclass
class Container:
    settings: Settings
    client_config: ClientConfig
    api_client: RequestClient
    fetcher: ImageFetcher
    image_service: ImageService


def build_container(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Container:
    """
    Wire services once at process start. ``transport`` replaces the network
    for both the API client and the image fetcher (tests only).
    """
    s = settings or Settings()
    cfg = ClientConfig.from_settings(s)

    api = RequestClient(cfg, transport=transport)
    fetcher = ImageFetcher(max_bytes=s.MAX_IMAGE_SIZE, timeout_sec=s.API_TIMEOUT_SEC,
                           transport=transport)
    images = ImageService(
        client=api,
        fetcher=fetcher,
        max_image_size=s.MAX_IMAGE_SIZE,
        cdn_base_url=s.CDN_BASE_URL,
    )

    return Container(s, cfg, api, fetcher, images)
