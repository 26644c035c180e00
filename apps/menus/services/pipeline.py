import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from django.conf import settings

from .errors import DigitizationError, ModelRequestError, StructuringEmptyError, VisionEmptyError
from .gateway import ImageInput, ModelGateway
from .json_recovery import recover_json
from .ocr_normalizer import normalize_ocr_result
from .retry import RetryPolicy, is_malformed_output, is_transient_ocr_failure, run_with_retry
from .schemas import validate_ocr_result, validate_structured_menu

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineConfig:
    ocr_max_attempts: int = 2
    structuring_max_attempts: int = 2
    timeout_seconds: float = 90.0

    @classmethod
    def from_settings(cls) -> "PipelineConfig":
        return cls(
            ocr_max_attempts=settings.MENU_AI_OCR_MAX_ATTEMPTS,
            structuring_max_attempts=settings.MENU_AI_STRUCTURING_MAX_ATTEMPTS,
            timeout_seconds=settings.MENU_AI_TIMEOUT_SECONDS,
        )


@dataclass
class DigitizationResult:
    structured_menu: Dict[str, Any]
    raw_ocr_response: Optional[str]
    raw_llm_response: Optional[str]


class DigitizationPipeline:
    """Images -> OCR -> normalized pages -> structured bilingual menu.

    Each stage is retried according to its own policy. Whatever the outcome,
    the raw bodies of the latest OCR and structuring replies are kept so the
    caller can store them on the job.
    """

    def __init__(self, gateway: ModelGateway, config: Optional[PipelineConfig] = None):
        self.gateway = gateway
        self.config = config or PipelineConfig()
        self.raw_ocr_response: Optional[str] = None
        self.raw_llm_response: Optional[str] = None

    @classmethod
    def from_settings(cls) -> "DigitizationPipeline":
        config = PipelineConfig.from_settings()
        return cls(ModelGateway.from_settings(timeout=config.timeout_seconds), config)

    def _ocr_attempt(self, images: Sequence[ImageInput], attempt: int) -> Dict[str, Any]:
        logger.info("OCR attempt %d for %d image(s)", attempt, len(images))
        try:
            result = self.gateway.run_ocr(images)
        except VisionEmptyError as exc:
            self.raw_ocr_response = exc.raw_response
            raise
        except ModelRequestError as exc:
            if exc.raw_text:
                self.raw_ocr_response = exc.raw_text
            raise
        self.raw_ocr_response = result.raw
        return validate_ocr_result(normalize_ocr_result(recover_json(result.content)))

    def _structuring_attempt(self, ocr_result: Dict[str, Any], attempt: int) -> Dict[str, Any]:
        logger.info("Structuring attempt %d", attempt)
        try:
            result = self.gateway.run_structuring(ocr_result)
        except StructuringEmptyError as exc:
            self.raw_llm_response = exc.raw_response
            raise
        except ModelRequestError as exc:
            if exc.raw_text:
                self.raw_llm_response = exc.raw_text
            raise
        self.raw_llm_response = result.raw
        return validate_structured_menu(recover_json(result.content))

    def run(self, images: Sequence[ImageInput]) -> DigitizationResult:
        self.raw_ocr_response = self.raw_llm_response = None
        ocr_policy = RetryPolicy(
            self.config.ocr_max_attempts,
            lambda exc: is_transient_ocr_failure(exc) or is_malformed_output(exc),
        )
        structuring_policy = RetryPolicy(self.config.structuring_max_attempts, is_malformed_output)
        try:
            ocr_result = run_with_retry(lambda n: self._ocr_attempt(images, n), ocr_policy, label="OCR")
            logger.info("OCR produced %d page(s)", len(ocr_result["pages"]))
            menu = run_with_retry(lambda n: self._structuring_attempt(ocr_result, n), structuring_policy,
                                  label="Structuring")
        except Exception as exc:
            logger.error("Menu digitization failed: %s", exc)
            raise DigitizationError(
                f"Menu digitization failed: {exc}",
                raw_ocr_response=self.raw_ocr_response,
                raw_llm_response=self.raw_llm_response,
                cause=exc,
            ) from exc
        logger.info("Structured menu has %d categor(ies)", len(menu["categories"]))
        return DigitizationResult(menu, self.raw_ocr_response, self.raw_llm_response)
