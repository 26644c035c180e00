"""Coerce whatever JSON the vision model produced into canonical OCR pages.

Canonical shape::

    {"pages": [{"pageIndex": 0, "lines": ["Nasi Goreng 25000", ...]}, ...]}

Vision models drift between prompt revisions and providers: some return the
canonical object, some wrap it in ``{"result": ...}``, some return a bare
string or a list of lines, some key pages by number. The normalizer tries a
fixed list of interpretations in priority order and takes the first one that
applies. It never raises; anything it cannot interpret becomes an empty page
list, which the OCR schema check downstream rejects or accepts as appropriate.
"""
import json
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

Page = Dict[str, Any]

WRAPPER_KEYS = ("result", "data")
LINE_LIST_KEYS = ("lines", "line", "textLines")
TEXT_KEYS = ("text", "content", "pageText")
INDEX_KEYS = ("pageIndex", "index", "page")
MAX_UNWRAP_DEPTH = 5

_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_ASCII_DIGITS = re.compile(r"[0-9]+")


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _parse_index(value: Any) -> Optional[int]:
    text = str(value).strip()
    return int(text) if _ASCII_DIGITS.fullmatch(text) else None


def _split_lines(text: str) -> List[str]:
    return [line.strip() for line in _LINE_BREAK.split(text) if line.strip()]


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if value is None:
        return ""
    return json.dumps(value, ensure_ascii=False).strip()


def _coerce_lines(values: List[Any]) -> List[str]:
    return [line for line in (_stringify(v) for v in values) if line]


def _page_lines(entry: Any) -> Optional[List[str]]:
    if isinstance(entry, str):
        return _split_lines(entry)
    if isinstance(entry, list):
        return _coerce_lines(entry)
    if isinstance(entry, dict):
        for key in LINE_LIST_KEYS:
            if isinstance(entry.get(key), list):
                return _coerce_lines(entry[key])
        for key in TEXT_KEYS:
            if isinstance(entry.get(key), str):
                return _split_lines(entry[key])
    return None


def _declared_index(entry: Any, fallback: int) -> int:
    if isinstance(entry, dict):
        for key in INDEX_KEYS:
            value = entry.get(key)
            if _is_index(value):
                return value
            if isinstance(value, str) and _parse_index(value) is not None:
                return _parse_index(value)
    return fallback


def _pages_from_entries(entries: List[Tuple[int, Any]]) -> List[Page]:
    pages = []
    for fallback, entry in entries:
        lines = _page_lines(entry)
        if lines is None:
            continue
        pages.append({"pageIndex": _declared_index(entry, fallback), "lines": lines})
    return sorted(pages, key=lambda page: page["pageIndex"])


def _single_page(lines: List[str], entry: Any = None) -> List[Page]:
    return [{"pageIndex": _declared_index(entry, 0), "lines": lines}]


def is_canonical(value: Any) -> bool:
    if not isinstance(value, dict) or not isinstance(value.get("pages"), list):
        return False
    for page in value["pages"]:
        if not isinstance(page, dict) or not _is_index(page.get("pageIndex")):
            return False
        lines = page.get("lines")
        if not isinstance(lines, list) or not all(isinstance(line, str) for line in lines):
            return False
    return True


# Coercion branches. Each takes the raw value and returns pages, or None when
# the branch does not apply.

def _from_string(value: Any) -> Optional[List[Page]]:
    if isinstance(value, str):
        return _single_page(_split_lines(value))
    return None


def _from_list(value: Any) -> Optional[List[Page]]:
    if not isinstance(value, list):
        return None
    if not value:
        return []
    if all(isinstance(v, (dict, list)) for v in value):
        return _pages_from_entries(list(enumerate(value)))
    return _single_page(_coerce_lines(value))


def _from_pages_key(value: Any) -> Optional[List[Page]]:
    if not isinstance(value, dict):
        return None
    pages = value.get("pages")
    if isinstance(pages, list):
        return _pages_from_entries(list(enumerate(pages)))
    if isinstance(pages, dict):
        keys = list(pages)
        if keys and all(_parse_index(k) is not None for k in keys):
            ordered = sorted(keys, key=_parse_index)
            return _pages_from_entries([(_parse_index(k), pages[k]) for k in ordered])
        ordered = sorted(keys, key=str)
        return _pages_from_entries([(pos, pages[k]) for pos, k in enumerate(ordered)])
    return None


def _from_single_page_object(value: Any) -> Optional[List[Page]]:
    if not isinstance(value, dict):
        return None
    lines = _page_lines(value)
    if lines is None:
        return None
    return _single_page(lines, value)


COERCIONS: Tuple[Callable[[Any], Optional[List[Page]]], ...] = (
    _from_string,
    _from_list,
    _from_pages_key,
    _from_single_page_object,
)


def normalize_ocr_result(value: Any, _depth: int = 0) -> Dict[str, List[Page]]:
    if is_canonical(value):
        return value
    if isinstance(value, dict) and _depth < MAX_UNWRAP_DEPTH:
        for key in WRAPPER_KEYS:
            if key in value:
                return normalize_ocr_result(value[key], _depth + 1)
    for coerce in COERCIONS:
        pages = coerce(value)
        if pages is not None:
            return {"pages": pages}
    return {"pages": []}
