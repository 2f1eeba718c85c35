import json
from typing import Dict, List

import httpx
import pytest

from app.caption.resolver import CaptionResolver, build_endpoints
from app.storage.s3 import StorageError, public_url

BOUNDARY = "testboundary123"
MODELS = ["A", "B", "C"]
BASE_URL = "https://api-inference.huggingface.co/models"


def multipart_body(parts, boundary: str = BOUNDARY) -> bytes:
    """parts: list of (name, filename or None, bytes)."""
    out = b""
    for name, filename, data in parts:
        disp = f'form-data; name="{name}"'
        if filename is not None:
            disp += f'; filename="{filename}"'
        out += f"--{boundary}\r\n".encode()
        out += f"Content-Disposition: {disp}\r\n".encode()
        if filename is not None:
            out += b"Content-Type: image/jpeg\r\n"
        out += b"\r\n" + data + b"\r\n"
    out += f"--{boundary}--\r\n".encode()
    return out


def content_type(boundary: str = BOUNDARY) -> str:
    return f"multipart/form-data; boundary={boundary}"


async def stream_of(data: bytes, size: int = 7):
    for i in range(0, len(data), size):
        yield data[i:i + size]


class RecordingStore:
    """In-memory object store that counts puts and can be told to fail."""

    def __init__(self, bucket: str = "test-bucket", region: str = "ap-south-1", fail: bool = False):
        self.bucket = bucket
        self.region = region
        self.fail = fail
        self.objects: Dict[str, bytes] = {}
        self.put_calls = 0

    async def put(self, key: str, data: bytes) -> None:
        self.put_calls += 1
        if self.fail:
            raise StorageError("access denied")
        self.objects[key] = data

    def public_url(self, key: str) -> str:
        return public_url(self.bucket, self.region, key)


class ScriptedProvider:
    """
    Mock inference endpoint. `script` maps model id -> (status, body).
    Records every request it sees.
    """

    def __init__(self, script):
        self.script = script
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        model = request.url.path.split("/models/", 1)[1]
        status, body = self.script[model]
        if isinstance(body, Exception):
            raise body
        if not isinstance(body, str):
            body = json.dumps(body)
        return httpx.Response(status, text=body)

    @property
    def models_called(self) -> List[str]:
        return [r.url.path.split("/models/", 1)[1] for r in self.requests]


def make_resolver(provider: ScriptedProvider, token="hf_test", models=MODELS) -> CaptionResolver:
    client = httpx.AsyncClient(transport=httpx.MockTransport(provider))
    return CaptionResolver(token=token, endpoints=build_endpoints(models, BASE_URL), timeout=5.0, client=client)


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def cat_provider():
    return ScriptedProvider({
        "A": (503, {"error": "Model A is currently loading"}),
        "B": (200, []),
        "C": (200, [{"generated_text": "a cat on a table"}]),
    })
