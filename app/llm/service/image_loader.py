import base64
import binascii
from typing import Iterable, Optional
from urllib.parse import urlparse

import httpx

from app.core.config import settings
from app.core.logger import get_logger


def default_allowed_hosts() -> set[str]:
    hosts = {h.strip().lower() for h in settings.IMAGE_ALLOWED_HOSTS.split(",") if h.strip()}
    if settings.SUPABASE_URL:
        supabase_host = urlparse(settings.SUPABASE_URL).hostname
        if supabase_host:
            hosts.add(supabase_host.lower())
    return hosts


class ImageLoader:
    """
    Turns a client-supplied image reference into base64 text.

    Only `data:` URIs and `https` URLs on an allowed host are accepted; local
    paths and every other scheme are rejected. Downloads are not redirected
    and are capped at `max_bytes`.
    """

    def __init__(
        self,
        timeout: float | None = None,
        allowed_hosts: Optional[Iterable[str]] = None,
        max_bytes: int | None = None,
    ):
        self.timeout = timeout or settings.PROVIDER_TIMEOUT_SECONDS
        self.allowed_hosts = (
            {h.lower() for h in allowed_hosts} if allowed_hosts is not None else default_allowed_hosts()
        )
        self.max_bytes = max_bytes or settings.IMAGE_MAX_BYTES
        self._logger = get_logger("ImageLoader")

    async def load_base64(self, image_url: str) -> str:
        if image_url.startswith("data:"):
            return self._from_data_uri(image_url)

        parsed = urlparse(image_url)
        if parsed.scheme != "https":
            raise ValueError(f"Unsupported image reference scheme: {parsed.scheme or 'local path'}")
        host = (parsed.hostname or "").lower()
        if host not in self.allowed_hosts:
            raise ValueError(f"Image host is not allowed: {host}")

        return base64.b64encode(await self._download(image_url)).decode("ascii")

    def _from_data_uri(self, image_url: str) -> str:
        # data:image/jpeg;base64,<payload>
        header, _, payload = image_url.partition(",")
        if ";base64" not in header or not payload:
            raise ValueError("Unsupported data URI for image")
        try:
            decoded_size = len(base64.b64decode(payload, validate=True))
        except binascii.Error as e:
            raise ValueError("Image data URI is not valid base64") from e
        if decoded_size > self.max_bytes:
            raise ValueError(f"Image exceeds {self.max_bytes} bytes")
        return payload

    async def _download(self, image_url: str) -> bytes:
        self._logger.debug(f"Fetching image {image_url}")
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=False) as client:
            async with client.stream("GET", image_url) as res:
                if res.status_code != 200:
                    raise ValueError(f"Image download failed with status {res.status_code}")
                declared = res.headers.get("content-length")
                if declared and declared.isdigit() and int(declared) > self.max_bytes:
                    raise ValueError(f"Image exceeds {self.max_bytes} bytes")

                content = bytearray()
                async for chunk in res.aiter_bytes():
                    content.extend(chunk)
                    if len(content) > self.max_bytes:
                        raise ValueError(f"Image exceeds {self.max_bytes} bytes")
        return bytes(content)
