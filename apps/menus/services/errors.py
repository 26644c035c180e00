from typing import Dict, List, Optional


class MenuAIError(Exception):
    """Base for every failure the digitization pipeline can raise."""


class ModelRequestError(MenuAIError):
    """Transport failure, timeout or non-2xx reply from the model gateway.

    ``status`` is the HTTP status code, or ``None`` for timeouts and network errors.
    """
    def __init__(self, message: str, status: Optional[int] = None, raw_text: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.raw_text = raw_text


class VisionEmptyError(MenuAIError):
    def __init__(self, message: str, raw_response: str):
        super().__init__(message)
        self.raw_response = raw_response


class StructuringEmptyError(MenuAIError):
    def __init__(self, message: str, raw_response: str):
        super().__init__(message)
        self.raw_response = raw_response


class ModelParseError(MenuAIError):
    pass


class SchemaValidationError(MenuAIError):
    def __init__(self, stage: str, errors: Dict[str, List[str]]):
        self.stage = stage
        self.errors = errors
        details = "; ".join(f"{path}: {', '.join(msgs)}" for path, msgs in errors.items())
        super().__init__(f"{stage} schema validation failed: {details}")


class DigitizationError(MenuAIError):
    """Terminal pipeline failure with whatever raw model output was captured."""
    def __init__(self, message: str, raw_ocr_response: Optional[str] = None,
                 raw_llm_response: Optional[str] = None, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.raw_ocr_response = raw_ocr_response
        self.raw_llm_response = raw_llm_response
        self.cause = cause
