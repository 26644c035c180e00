"""Pytest configuration shared across the suite."""

import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from apps.menus.services.gateway import GatewayResult  # noqa: E402

OCR_CONTENT = '{"pages":[{"pageIndex":0,"lines":["Nasi Goreng 25000","Es Teh 8000"]}]}'

STRUCTURED_MENU = {
    "categories": [{
        "nameEn": "Mains",
        "nameOriginal": None,
        "nameRu": "Основные блюда",
        "items": [{
            "originalName": "Nasi Goreng",
            "nameEn": "Fried Rice",
            "nameRu": "Наси Горенг",
            "priceValue": 25000,
            "priceCurrency": "IDR",
            "descriptionEn": None,
            "descriptionRu": None,
            "isSpicy": False,
            "approxCalories": None,
            "isLocalSpecial": True,
        }],
    }],
}


def completion_body(content) -> str:
    return json.dumps({"id": "gen-1", "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]})


def ok(content: str) -> GatewayResult:
    return GatewayResult(content=content, raw=completion_body(content))


class FakeGateway:
    """Replays queued outcomes; an outcome is a GatewayResult or an exception to raise."""

    def __init__(self, ocr=(), structuring=()):
        self.ocr_outcomes = list(ocr)
        self.structuring_outcomes = list(structuring)
        self.ocr_calls = []
        self.structuring_calls = []

    @staticmethod
    def _next(outcomes):
        outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def run_ocr(self, images):
        self.ocr_calls.append(list(images))
        return self._next(self.ocr_outcomes)

    def run_structuring(self, ocr_result):
        self.structuring_calls.append(ocr_result)
        return self._next(self.structuring_outcomes)


@pytest.fixture
def happy_gateway():
    return FakeGateway(ocr=[ok(OCR_CONTENT)], structuring=[ok(json.dumps(STRUCTURED_MENU, ensure_ascii=False))])


@pytest.fixture
def venue(db):
    from apps.menus.models import Venue
    return Venue.objects.create(name="Warung Test")
