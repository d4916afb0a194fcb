"""Shared fixtures for ShareBill tests."""

import io
import time

import pytest
from PIL import Image

from image_editor import ImageEditService
from receipt_analysis import ReceiptAnalysisService
from session import BillSession


class FakeAnalyzer(ReceiptAnalysisService):
    """Analysis service returning a canned payload or raising a canned error."""

    def __init__(self, payload=None, error=None, delay=0.0):
        self.payload = payload
        self.error = error
        self.delay = delay
        self.calls = 0

    def analyze(self, image_bytes):
        self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return self.payload


class FakeEditor(ImageEditService):
    """Edit service returning canned bytes and recording what it was given."""

    def __init__(self, result=b"edited-png", error=None):
        self.result = result
        self.error = error
        self.received = []

    def edit(self, image_bytes, instruction):
        self.received.append((image_bytes, instruction))
        if self.error:
            raise self.error
        return self.result


@pytest.fixture
def receipt_payload():
    return {
        "items": [
            {"id": "a", "name": "Pasta", "price": 10},
            {"id": "b", "name": "Steak", "price": 20},
        ],
        "subtotal": 30,
        "tax": 3,
        "tip": 0,
        "total": 33,
        "currency": "$",
    }


@pytest.fixture
def png_bytes():
    image = Image.new("RGB", (64, 48), color=(200, 120, 40))
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def fake_analyzer():
    return FakeAnalyzer


@pytest.fixture
def fake_editor():
    return FakeEditor


@pytest.fixture
def splitting_session(receipt_payload, png_bytes):
    """A session with the two-item receipt loaded and nobody assigned."""
    session = BillSession()
    ticket = session.begin_analysis(png_bytes)
    assert session.complete_analysis(ticket, receipt_payload)
    return session
