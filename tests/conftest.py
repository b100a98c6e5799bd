"""Shared test fixtures for the CNIC OCR test suite."""

import io
import json
import struct
import zlib
from collections.abc import Callable
from pathlib import Path

import httpx
import numpy as np
import pytest
from PIL import Image

from cnic_ocr.ocr.document_processor import DocumentProcessor
from cnic_ocr.ocr.ocr_space_client import OCRSpaceClient
from cnic_ocr.utils.config import AppConfig, OCRConfig
from cnic_ocr.validation.rules_engine import RulesEngine

CNIC_TEXT = (
    "Name: Sarah Khan Father's Name: Imran Khan Identity Number 42201-8345146-7 "
    "Date of Birth 14.03.1990 Date of Expiry 14.03.2030"
)


def _image_bytes(
    width: int, height: int, fmt: str = "JPEG", noise: bool = False
) -> bytes:
    if noise:
        rng = np.random.default_rng(42)
        pixels = rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)
        img = Image.fromarray(pixels)
    else:
        img = Image.new("RGB", (width, height), (230, 230, 230))
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def make_image() -> Callable[..., bytes]:
    """Factory for encoded test images of a given size."""
    return _image_bytes


@pytest.fixture
def card_photo() -> bytes:
    """A plain photo above the resolution floor."""
    return _image_bytes(1000, 600)


@pytest.fixture
def small_photo() -> bytes:
    """A photo below the resolution floor."""
    return _image_bytes(640, 480)


@pytest.fixture
def card_photo_path(tmp_path: Path, card_photo: bytes) -> Path:
    path = tmp_path / "front.jpg"
    path.write_bytes(card_photo)
    return path


@pytest.fixture
def app_config() -> AppConfig:
    """Configuration with a dummy API key and no rules file."""
    return AppConfig(
        ocr=OCRConfig(api_key="test-key", timeout_seconds=5),
    )


@pytest.fixture
def ocr_reply() -> Callable[..., dict]:
    """Factory for OCR.space JSON replies."""

    def build(text: str = CNIC_TEXT, **overrides: object) -> dict:
        reply: dict = {
            "ParsedResults": [
                {"ParsedText": text, "ErrorMessage": "", "FileParseExitCode": 1}
            ],
            "OCRExitCode": 1,
            "IsErroredOnProcessing": False,
            "ErrorMessage": None,
            "ErrorDetails": None,
            "ProcessingTimeInMilliseconds": "812",
        }
        reply.update(overrides)
        return reply

    return build


@pytest.fixture
def make_processor(app_config: AppConfig) -> Callable[..., DocumentProcessor]:
    """Factory for processors talking to a stubbed OCR.space endpoint.

    Accepts either a reply dict, served as JSON with status 200, or an
    ``httpx.MockTransport`` handler.
    """

    def build(reply: dict | Callable[[httpx.Request], httpx.Response]) -> DocumentProcessor:
        if callable(reply):
            handler = reply
        else:

            def handler(request: httpx.Request) -> httpx.Response:
                return httpx.Response(200, content=json.dumps(reply).encode())

        client = OCRSpaceClient(app_config.ocr, transport=httpx.MockTransport(handler))
        return DocumentProcessor(
            app_config,
            client=client,
            rules_engine=RulesEngine(Path("/nonexistent/rules.yaml")),
        )

    return build


@pytest.fixture
def cnic_text() -> str:
    """Recognized text of a clean, fully readable card."""
    return CNIC_TEXT


@pytest.fixture
def oversized_png() -> bytes:
    """A tiny PNG whose header declares 20000x20000 pixels.

    Pillow refuses to open it as a decompression bomb.
    """
    data = bytearray(_image_bytes(1, 1, fmt="PNG"))
    # IHDR payload starts after the 8-byte signature and 8-byte chunk header
    data[16:24] = struct.pack(">II", 20000, 20000)
    data[29:33] = struct.pack(">I", zlib.crc32(bytes(data[12:29])))
    return bytes(data)
