import json
from typing import Any

from .errors import ModelParseError


def recover_json(text: Any) -> Any:
    """Parse a model reply as JSON, falling back to the outermost ``{...}`` span.

    Models regularly wrap the object in prose or markdown fences; the fallback
    cuts from the first ``{`` to the last ``}`` and tries again.
    """
    if not isinstance(text, str):
        raise ModelParseError(f"Model returned non-text content: {type(text).__name__}")
    try:
        return json.loads(text)
    except (ValueError, RecursionError) as exc:
        original = exc
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        try:
            return json.loads(text[start:end + 1])
        except (ValueError, RecursionError):
            pass
    raise ModelParseError(f"Model returned invalid JSON: {original}")
