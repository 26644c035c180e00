import json
from types import SimpleNamespace

import pytest
import requests
from django.core.exceptions import ImproperlyConfigured
from urllib3.exceptions import ReadTimeoutError

from apps.menus.services.errors import ModelRequestError, StructuringEmptyError, VisionEmptyError
from apps.menus.services import gateway as gateway_module
from apps.menus.services.gateway import ImageInput, ModelGateway

from .conftest import completion_body


class FakeRaw:
    def __init__(self, chunks, on_read=None):
        self.chunks = list(chunks)
        self.on_read = on_read

    def read1(self, amt=None, decode_content=None):
        if self.on_read:
            self.on_read()
        return self.chunks.pop(0) if self.chunks else b""


class FakeResponse:
    def __init__(self, status_code: int, text: str, chunks=None, on_read=None):
        self.status_code = status_code
        self.encoding = "utf-8"
        self.raw = FakeRaw(chunks if chunks is not None else [text.encode("utf-8")], on_read)
        self.closed = False

    def close(self):
        self.closed = True


class FakeSession:
    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = []

    def post(self, url, data=None, headers=None, timeout=None, stream=False):
        self.calls.append({"url": url, "body": json.loads(data), "headers": headers, "timeout": timeout,
                           "stream": stream})
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return self.outcome


def make_gateway(outcome, **kwargs):
    session = FakeSession(outcome)
    options = dict(api_key="k", base_url="https://llm.example/api/v1/", vision_model="vision-m", session=session)
    options.update(kwargs)
    return ModelGateway(**options), session


OCR_RESULT = {"pages": [{"pageIndex": 0, "lines": ["Nasi Goreng 25000"]}, {"pageIndex": 1, "lines": ["Es Teh 8000"]}]}


def test_run_ocr_sends_images_and_returns_content():
    body = completion_body('{"pages": []}')
    gateway, session = make_gateway(FakeResponse(200, body), timeout=12)
    result = gateway.run_ocr([ImageInput(url="https://cdn.example/menu.jpg"),
                              ImageInput(data=b"\x89PNG", mime_type="image/png")])

    assert result.content == '{"pages": []}'
    assert result.raw == body
    call = session.calls[0]
    assert call["url"] == "https://llm.example/api/v1/chat/completions"
    assert call["timeout"] == 12
    assert call["headers"]["Authorization"] == "Bearer k"
    assert call["body"]["model"] == "vision-m"
    assert call["body"]["response_format"] == {"type": "json_object"}
    parts = call["body"]["messages"][0]["content"]
    assert parts[0]["type"] == "text"
    assert parts[1]["image_url"]["url"] == "https://cdn.example/menu.jpg"
    assert parts[2]["image_url"]["url"] == "data:image/png;base64,iVBORw=="


def test_run_structuring_uses_text_model_and_ocr_lines():
    gateway, session = make_gateway(FakeResponse(200, completion_body("{}")), text_model="text-m")
    gateway.run_structuring(OCR_RESULT)

    body = session.calls[0]["body"]
    assert body["model"] == "text-m"
    prompt = body["messages"][0]["content"]
    assert "Nasi Goreng 25000\n\nEs Teh 8000" in prompt


def test_text_model_defaults_to_vision_model():
    gateway, _ = make_gateway(FakeResponse(200, completion_body("{}")))
    assert gateway.text_model == "vision-m"


def test_non_success_status_is_a_request_error():
    gateway, _ = make_gateway(FakeResponse(503, "upstream overloaded"))
    with pytest.raises(ModelRequestError) as excinfo:
        gateway.run_ocr([ImageInput(url="https://cdn.example/a.jpg")])
    assert excinfo.value.status == 503
    assert excinfo.value.raw_text == "upstream overloaded"


def test_timeout_is_a_request_error_without_status():
    gateway, _ = make_gateway(requests.Timeout("read timed out"), timeout=90)
    with pytest.raises(ModelRequestError) as excinfo:
        gateway.run_ocr([ImageInput(url="https://cdn.example/a.jpg")])
    assert excinfo.value.status is None
    assert "timed out after 90 seconds" in str(excinfo.value)


def test_network_error_is_a_request_error():
    gateway, _ = make_gateway(requests.ConnectionError("refused"))
    with pytest.raises(ModelRequestError) as excinfo:
        gateway.run_structuring(OCR_RESULT)
    assert excinfo.value.status is None


@pytest.mark.parametrize("raw", ['{"choices": []}', '{"id": "x"}', "not json", '{"choices": [{"message": {}}]}'])
def test_empty_vision_reply_keeps_raw_payload(raw):
    gateway, _ = make_gateway(FakeResponse(200, raw))
    with pytest.raises(VisionEmptyError) as excinfo:
        gateway.run_ocr([ImageInput(url="https://cdn.example/a.jpg")])
    assert excinfo.value.raw_response == raw


def test_empty_structuring_reply():
    gateway, _ = make_gateway(FakeResponse(200, '{"choices": []}'))
    with pytest.raises(StructuringEmptyError):
        gateway.run_structuring(OCR_RESULT)


def test_content_parts_are_joined():
    raw = json.dumps({"choices": [{"message": {"content": [{"type": "text", "text": '{"a":'}, {"type": "text", "text": "1}"}]}}]})
    gateway, _ = make_gateway(FakeResponse(200, raw))
    assert gateway.run_structuring(OCR_RESULT).content == '{"a":1}'


def test_object_content_is_serialized():
    gateway, _ = make_gateway(FakeResponse(200, completion_body({"pages": []})))
    assert json.loads(gateway.run_ocr([ImageInput(url="https://x/a.jpg")]).content) == {"pages": []}


def test_missing_api_key_is_a_configuration_error():
    with pytest.raises(ImproperlyConfigured):
        ModelGateway(api_key="")


def test_from_settings_reads_django_settings(settings):
    settings.OPENROUTER_API_KEY = "from-settings"
    settings.OPENROUTER_VISION_MODEL = "vm"
    settings.OPENROUTER_TEXT_MODEL = "tm"
    settings.MENU_AI_TIMEOUT_SECONDS = 30
    gateway = ModelGateway.from_settings()
    assert (gateway.api_key, gateway.vision_model, gateway.text_model, gateway.timeout) == ("from-settings", "vm", "tm", 30)


def test_body_is_read_in_chunks_and_decoded():
    body = completion_body("Soto Ayam – 20000")
    encoded = body.encode("utf-8")
    response = FakeResponse(200, body, chunks=[encoded[:7], encoded[7:]])
    gateway, session = make_gateway(response)
    assert gateway.run_structuring(OCR_RESULT).content == "Soto Ayam – 20000"
    assert session.calls[0]["stream"] is True
    assert response.closed


def test_trickled_body_hits_wall_clock_deadline(monkeypatch):
    now = [0.0]
    monkeypatch.setattr(gateway_module, "time", SimpleNamespace(monotonic=lambda: now[0]))

    def tick():
        now[0] += 0.6

    body = completion_body("{}").encode("utf-8")
    response = FakeResponse(200, "", chunks=[body[i:i + 1] for i in range(len(body))], on_read=tick)
    gateway, _ = make_gateway(response, timeout=2)
    with pytest.raises(ModelRequestError) as excinfo:
        gateway.run_structuring(OCR_RESULT)
    assert excinfo.value.status is None
    assert "timed out after 2 seconds" in str(excinfo.value)
    assert response.raw.chunks
    assert response.closed


def test_stalled_read_is_a_timeout():
    def stall():
        raise ReadTimeoutError(None, "/chat/completions", "Read timed out.")

    gateway, _ = make_gateway(FakeResponse(200, "", on_read=stall), timeout=5)
    with pytest.raises(ModelRequestError, match="timed out after 5 seconds"):
        gateway.run_ocr([ImageInput(url="https://cdn.example/a.jpg")])
