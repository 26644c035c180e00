import logging
import mimetypes
from typing import List

from celery import shared_task
from django.core.files.storage import default_storage
from django.db import transaction

from .models import DigitizationJob
from .services.errors import DigitizationError
from .services.gateway import ImageInput
from .services.menu_store import replace_job_menu
from .services.pipeline import DigitizationPipeline

logger = logging.getLogger(__name__)

INTERRUPTED_MESSAGE = "Digitization was interrupted. Please upload the menu again."


def load_images(references: List[str]) -> List[ImageInput]:
    images = []
    for ref in references:
        if ref.startswith(("http://", "https://")):
            images.append(ImageInput(url=ref))
            continue
        with default_storage.open(ref, "rb") as fh:
            data = fh.read()
        images.append(ImageInput(data=data, mime_type=mimetypes.guess_type(ref)[0] or "image/jpeg"))
    return images


def _fail(job: DigitizationJob, message: str, raw_ocr=None, raw_llm=None) -> None:
    job.advance(DigitizationJob.FAILED)
    job.error_message = message or "Unknown error during digitization"
    if raw_ocr is not None:
        job.raw_ocr_response = raw_ocr
    if raw_llm is not None:
        job.raw_llm_response = raw_llm
    job.save(update_fields=["status", "error_message", "raw_ocr_response", "raw_llm_response", "updated_at"])


@shared_task
def process_digitization_job(job_id):
    job = DigitizationJob.objects.get(pk=job_id)
    if job.status == DigitizationJob.PROCESSING:
        # Redelivered after a worker died mid-run; the earlier attempt is lost.
        logger.warning("job %s redelivered while processing, marking failed", job_id)
        _fail(job, INTERRUPTED_MESSAGE)
        return job.status
    job.advance(DigitizationJob.PROCESSING)
    job.save(update_fields=["status", "updated_at"])
    try:
        result = DigitizationPipeline.from_settings().run(load_images(job.image_references))
        with transaction.atomic():
            replace_job_menu(job, result.structured_menu["categories"])
            job.advance(DigitizationJob.COMPLETED)
            job.raw_ocr_response = result.raw_ocr_response
            job.raw_llm_response = result.raw_llm_response
            job.save(update_fields=["status", "raw_ocr_response", "raw_llm_response", "updated_at"])
    except DigitizationError as exc:
        logger.warning("job %s failed: %s", job_id, exc)
        _fail(job, str(exc), exc.raw_ocr_response, exc.raw_llm_response)
        return job.status
    except Exception as exc:
        logger.exception("job %s crashed", job_id)
        job.refresh_from_db()
        _fail(job, str(exc))
        raise
    logger.info("job %s completed with %d categories", job_id, len(result.structured_menu["categories"]))
    return job.status
