"""Strict DRF schemas for the two model replies.

The stock DRF scalar fields coerce ``"0"`` to ``0`` and ``"true"`` to ``True``;
model output has to be rejected in those cases, so the fields below only
accept the JSON type they declare.
"""
from typing import Any, Dict, List

from rest_framework import serializers
from rest_framework.settings import api_settings

from .errors import SchemaValidationError

# Column limits of the menu tables.
NAME_MAX_LENGTH = 255
CURRENCY_MAX_LENGTH = 8
MAX_STORED_INT = 2147483647


class StrictCharField(serializers.CharField):
    def to_internal_value(self, data):
        if not isinstance(data, str):
            self.fail("invalid")
        return super().to_internal_value(data)


class StrictIntegerField(serializers.IntegerField):
    def to_internal_value(self, data):
        if isinstance(data, bool) or not isinstance(data, (int, float)):
            self.fail("invalid")
        if isinstance(data, float):
            if not data.is_integer():
                self.fail("invalid")
            data = int(data)
        return super().to_internal_value(data)


class StrictBooleanField(serializers.BooleanField):
    def to_internal_value(self, data):
        if not isinstance(data, bool):
            self.fail("invalid", input=data)
        return data


class OcrPageSerializer(serializers.Serializer):
    pageIndex = StrictIntegerField(min_value=0)
    lines = serializers.ListField(child=StrictCharField(allow_blank=True, trim_whitespace=False))


class OcrResultSerializer(serializers.Serializer):
    pages = OcrPageSerializer(many=True)


class MenuItemSchema(serializers.Serializer):
    originalName = StrictCharField(max_length=NAME_MAX_LENGTH)
    nameEn = StrictCharField(max_length=NAME_MAX_LENGTH)
    nameRu = StrictCharField(max_length=NAME_MAX_LENGTH)
    descriptionEn = StrictCharField(allow_null=True, allow_blank=True, required=False, default=None)
    descriptionRu = StrictCharField(allow_null=True, allow_blank=True, required=False, default=None)
    priceValue = StrictIntegerField(min_value=0, max_value=MAX_STORED_INT, allow_null=True, required=False, default=None)
    priceCurrency = StrictCharField(max_length=CURRENCY_MAX_LENGTH, required=False, default="IDR")
    isSpicy = StrictBooleanField(required=False, default=False)
    approxCalories = StrictIntegerField(min_value=0, max_value=MAX_STORED_INT, allow_null=True, required=False, default=None)
    isLocalSpecial = StrictBooleanField(required=False, default=False)


class MenuCategorySchema(serializers.Serializer):
    nameEn = StrictCharField(max_length=NAME_MAX_LENGTH)
    nameOriginal = StrictCharField(max_length=NAME_MAX_LENGTH, allow_null=True, allow_blank=True, required=False, default=None)
    nameRu = StrictCharField(max_length=NAME_MAX_LENGTH)
    items = MenuItemSchema(many=True)


class StructuredMenuSerializer(serializers.Serializer):
    categories = MenuCategorySchema(many=True)


def flatten_errors(errors: Any, prefix: str = "") -> Dict[str, List[str]]:
    """Turn nested DRF errors into ``{"categories[0].items[1].nameRu": [...]}``."""
    flat: Dict[str, List[str]] = {}
    if isinstance(errors, dict):
        for key, value in errors.items():
            if isinstance(key, int):
                path = f"{prefix}[{key}]"
            elif key == api_settings.NON_FIELD_ERRORS_KEY:
                path = prefix or key
            else:
                path = f"{prefix}.{key}" if prefix else str(key)
            for p, msgs in flatten_errors(value, path).items():
                flat.setdefault(p, []).extend(msgs)
    elif isinstance(errors, list):
        if all(isinstance(e, str) for e in errors):
            if errors:
                flat.setdefault(prefix or api_settings.NON_FIELD_ERRORS_KEY, []).extend(str(e) for e in errors)
        else:
            for index, value in enumerate(errors):
                if value:
                    for p, msgs in flatten_errors(value, f"{prefix}[{index}]").items():
                        flat.setdefault(p, []).extend(msgs)
    elif errors:
        flat.setdefault(prefix or api_settings.NON_FIELD_ERRORS_KEY, []).append(str(errors))
    return flat


def _plain(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def _validate(serializer_class, data: Any, stage: str) -> Dict[str, Any]:
    serializer = serializer_class(data=data)
    if not serializer.is_valid():
        raise SchemaValidationError(stage, flatten_errors(serializer.errors))
    return _plain(serializer.validated_data)


def validate_ocr_result(data: Any) -> Dict[str, Any]:
    return _validate(OcrResultSerializer, data, "OCR")


def validate_structured_menu(data: Any) -> Dict[str, Any]:
    return _validate(StructuredMenuSerializer, data, "Structured menu")
