import logging
from datetime import datetime

from django.db import transaction
from django.utils import timezone

from ..models import DigitizationJob, Venue

logger = logging.getLogger(__name__)


def publish_job(venue_id, job_id) -> datetime:
    """Make ``job_id`` the only published job of ``venue_id``.

    The venue row is locked for the duration of the transaction so concurrent
    publishers for the same venue are serialized. The caller checks that the
    job is COMPLETED; a job that does not belong to the venue raises
    ``DigitizationJob.DoesNotExist`` and rolls everything back.
    """
    with transaction.atomic():
        Venue.objects.select_for_update().only("id").get(pk=venue_id)
        unpublished = DigitizationJob.objects.filter(venue_id=venue_id, is_published=True).update(is_published=False)
        published_at = timezone.now()
        updated = (DigitizationJob.objects.filter(pk=job_id, venue_id=venue_id)
                   .update(is_published=True, published_at=published_at))
        if updated != 1:
            raise DigitizationJob.DoesNotExist(f"Job {job_id} not found for venue {venue_id}")
    logger.info("published job %s for venue %s (unpublished %d)", job_id, venue_id, unpublished)
    return published_at


def unpublish_venue(venue_id) -> int:
    with transaction.atomic():
        Venue.objects.select_for_update().only("id").get(pk=venue_id)
        count = DigitizationJob.objects.filter(venue_id=venue_id, is_published=True).update(is_published=False)
    logger.info("unpublished %d job(s) for venue %s", count, venue_id)
    return count
