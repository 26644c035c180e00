import base64
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import requests
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from urllib3.exceptions import HTTPError as TransportError, ReadTimeoutError

from .errors import ModelRequestError, StructuringEmptyError, VisionEmptyError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_VISION_MODEL = "qwen/qwen2.5-vl-72b-instruct"
DEFAULT_TIMEOUT_SECONDS = 90.0
READ_CHUNK_BYTES = 16384

OCR_PROMPT = "\n".join([
    "You are an OCR engine.",
    "Extract ALL visible text from the provided menu image(s).",
    "Return ONLY valid JSON (no markdown, no commentary) in EXACTLY this format:",
    '{"pages": [{"pageIndex": 0, "lines": ["line 1", "line 2"]}, {"pageIndex": 1, "lines": ["..."]}]}',
    "",
    "Rules:",
    '- ALWAYS include the top-level key "pages" as an array.',
    '- The number of objects in "pages" MUST equal the number of input images.',
    '- "pageIndex" MUST be 0-based and match the order of the input images.',
    '- "lines" MUST be an array of strings, one per printed line of text.',
    "- Preserve order; do not merge unrelated lines; do not invent items.",
    "- If a page has no readable text, return an empty lines array for that page.",
])

STRUCTURING_PROMPT = """You are an expert menu digitizer. Extract the menu categories and items from the text below.

For each item provide:
- originalName: the name exactly as printed.
- nameEn: English name.
- nameRu: Russian name (ALWAYS provide; if unsure, transliterate into Cyrillic).
- descriptionEn / descriptionRu: descriptions, or null.
- priceValue: integer price in the smallest currency unit (15000 for "Rp15.000"), or null.
- priceCurrency: currency code, "IDR" when missing.
- isSpicy: true if the dish is spicy, else false.
- approxCalories: integer calories (320 for "~320 kcal"), or null.
- isLocalSpecial: true for local specialities, else false.

Group items into categories using headings, price blocks and blank lines. If there are no headings,
infer meaningful groups (e.g. "Drinks", "Mains"); use "General" when nothing fits.

Return a SINGLE JSON object, no markdown, with every key present:
{"categories": [{"nameEn": str, "nameOriginal": str|null, "nameRu": str,
  "items": [{"originalName": str, "nameEn": str, "nameRu": str, "priceValue": int|null,
             "priceCurrency": str, "descriptionEn": str|null, "descriptionRu": str|null,
             "isSpicy": bool, "approxCalories": int|null, "isLocalSpecial": bool}]}]}
nameEn and nameRu MUST be non-empty. priceValue and approxCalories MUST be numbers or null.

Menu text:
```
%s
```"""


@dataclass
class ImageInput:
    url: Optional[str] = None
    data: Optional[bytes] = None
    mime_type: str = "image/jpeg"

    def as_content_part(self) -> Dict[str, Any]:
        if self.url:
            return {"type": "image_url", "image_url": {"url": self.url}}
        encoded = base64.b64encode(self.data or b"").decode("ascii")
        return {"type": "image_url", "image_url": {"url": f"data:{self.mime_type};base64,{encoded}"}}


@dataclass
class GatewayResult:
    content: str
    raw: str


def ocr_text(ocr_result: Dict[str, Any]) -> str:
    return "\n\n".join("\n".join(page["lines"]) for page in ocr_result["pages"])


def _content_text(content: Any) -> Optional[str]:
    if content is None:
        return None
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = [p.get("text", "") if isinstance(p, dict) else str(p) for p in content]
        return "".join(parts)
    return json.dumps(content, ensure_ascii=False)


class ModelGateway:
    """OpenAI-compatible chat-completions client for the OCR and structuring calls."""

    def __init__(self, api_key: str, base_url: str = DEFAULT_BASE_URL,
                 vision_model: str = DEFAULT_VISION_MODEL, text_model: Optional[str] = None,
                 timeout: float = DEFAULT_TIMEOUT_SECONDS, session: Optional[requests.Session] = None):
        if not api_key:
            raise ImproperlyConfigured("OPENROUTER_API_KEY is not set.")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.vision_model = vision_model
        self.text_model = text_model or vision_model
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, **overrides) -> "ModelGateway":
        options = dict(
            api_key=settings.OPENROUTER_API_KEY,
            base_url=settings.OPENROUTER_BASE_URL,
            vision_model=settings.OPENROUTER_VISION_MODEL,
            text_model=settings.OPENROUTER_TEXT_MODEL,
            timeout=settings.MENU_AI_TIMEOUT_SECONDS,
        )
        options.update(overrides)
        return cls(**options)

    def _post(self, body: Dict[str, Any]) -> str:
        url = f"{self.base_url}/chat/completions"
        payload = json.dumps(body)
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        logger.info("model request POST %s model=%s size=%d bytes", url, body.get("model"), len(payload.encode("utf-8")))
        deadline = time.monotonic() + self.timeout
        try:
            resp = self.session.post(url, data=payload, headers=headers, timeout=self.timeout, stream=True)
            try:
                text = self._read_body(resp, deadline)
            finally:
                resp.close()
        except (requests.Timeout, ReadTimeoutError) as exc:
            raise self._timed_out() from exc
        except (requests.RequestException, TransportError) as exc:
            raise ModelRequestError(f"Model request failed: {exc}") from exc
        size = len(text.encode("utf-8"))
        if not 200 <= resp.status_code < 300:
            logger.warning("model error status=%s size=%d bytes body=%s", resp.status_code, size, text[:2000])
            raise ModelRequestError(f"Model API error: {resp.status_code} - {text}", status=resp.status_code, raw_text=text)
        logger.info("model response status=%s size=%d bytes", resp.status_code, size)
        return text

    def _timed_out(self) -> ModelRequestError:
        return ModelRequestError(f"Model request timed out after {self.timeout:g} seconds.")

    def _read_body(self, resp: requests.Response, deadline: float) -> str:
        # read1 returns whatever one socket read yields, so a slowly trickled
        # body still hits the wall-clock deadline.
        chunks = []
        while True:
            if time.monotonic() > deadline:
                raise self._timed_out()
            chunk = resp.raw.read1(READ_CHUNK_BYTES, decode_content=True)
            if not chunk:
                break
            chunks.append(chunk)
        return b"".join(chunks).decode(resp.encoding or "utf-8", errors="replace")

    @staticmethod
    def _first_choice_content(raw: str) -> Optional[str]:
        try:
            data = json.loads(raw)
        except ValueError:
            return None
        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            return None
        message = choices[0].get("message")
        if not isinstance(message, dict):
            return None
        return _content_text(message.get("content"))

    def run_ocr(self, images: Sequence[ImageInput]) -> GatewayResult:
        content: List[Dict[str, Any]] = [{"type": "text", "text": OCR_PROMPT}]
        content.extend(image.as_content_part() for image in images)
        raw = self._post({
            "model": self.vision_model,
            "messages": [{"role": "user", "content": content}],
            "response_format": {"type": "json_object"},
            "temperature": 0,
        })
        text = self._first_choice_content(raw)
        if text is None:
            logger.warning("vision response had no usable choice: %s", raw[:2000])
            raise VisionEmptyError("Vision model returned an empty or invalid response.", raw)
        return GatewayResult(content=text, raw=raw)

    def run_structuring(self, ocr_result: Dict[str, Any]) -> GatewayResult:
        raw = self._post({
            "model": self.text_model,
            "messages": [{"role": "user", "content": STRUCTURING_PROMPT % ocr_text(ocr_result)}],
            "response_format": {"type": "json_object"},
            "temperature": 0.2,
        })
        text = self._first_choice_content(raw)
        if text is None:
            logger.warning("structuring response had no usable choice: %s", raw[:2000])
            raise StructuringEmptyError("Text model returned an empty or invalid response.", raw)
        return GatewayResult(content=text, raw=raw)
