import base64

import httpx
import pytest

from app.llm.service.image_loader import ImageLoader

ALLOWED = {"project.supabase.test"}


@pytest.fixture
def loader():
    return ImageLoader(timeout=5, allowed_hosts=ALLOWED, max_bytes=64)


async def test_data_uri_payload_is_returned_as_is(loader):
    assert await loader.load_base64("data:image/jpeg;base64,/9j/4AAQ") == "/9j/4AAQ"


@pytest.mark.parametrize(
    "image_url",
    ["data:image/jpeg,raw", "data:image/jpeg;base64,", "data:image/jpeg;base64,not*base64"],
)
async def test_malformed_data_uri_is_rejected(loader, image_url):
    with pytest.raises(ValueError):
        await loader.load_base64(image_url)


async def test_oversized_data_uri_is_rejected(loader):
    payload = base64.b64encode(b"x" * 65).decode("ascii")

    with pytest.raises(ValueError):
        await loader.load_base64(f"data:image/jpeg;base64,{payload}")


@pytest.mark.parametrize(
    "image_url",
    [
        "/etc/passwd",
        "file:///etc/passwd",
        ".env",
        "http://project.supabase.test/storage/v1/object/public/leaf.jpg",
        "ftp://project.supabase.test/leaf.jpg",
        "https://169.254.169.254/latest/meta-data/",
        "https://evil.test/leaf.jpg",
    ],
)
async def test_server_local_and_untrusted_references_are_rejected(loader, mock_http, image_url):
    requests = mock_http(lambda request: httpx.Response(200, content=b"jpeg"))

    with pytest.raises(ValueError):
        await loader.load_base64(image_url)
    assert requests == []


async def test_allowed_host_image_is_downloaded(loader, mock_http):
    requests = mock_http(lambda request: httpx.Response(200, content=b"remote-jpeg"))

    encoded = await loader.load_base64("https://project.supabase.test/storage/v1/object/public/leaf.jpg")

    assert base64.b64decode(encoded) == b"remote-jpeg"
    assert requests[0].url.host == "project.supabase.test"


async def test_redirects_are_not_followed(loader, mock_http):
    requests = mock_http(
        lambda request: httpx.Response(302, headers={"location": "http://127.0.0.1/admin"})
    )

    with pytest.raises(ValueError):
        await loader.load_base64("https://project.supabase.test/leaf.jpg")
    assert len(requests) == 1


async def test_oversized_download_is_rejected(loader, mock_http):
    mock_http(lambda request: httpx.Response(200, content=b"x" * 65))

    with pytest.raises(ValueError):
        await loader.load_base64("https://project.supabase.test/big.jpg")


async def test_remote_error_status_is_rejected(loader, mock_http):
    mock_http(lambda request: httpx.Response(404))

    with pytest.raises(ValueError):
        await loader.load_base64("https://project.supabase.test/missing.jpg")
