import logging
import string

from django.db import IntegrityError, transaction
from django.utils.crypto import get_random_string

from ..models import Venue

logger = logging.getLogger(__name__)

SHORT_CODE_LENGTH = 8
SHORT_CODE_ALPHABET = string.ascii_letters + string.digits + "_-"


class ShortCodeAllocationError(Exception):
    pass


def generate_short_code() -> str:
    return get_random_string(SHORT_CODE_LENGTH, allowed_chars=SHORT_CODE_ALPHABET)


def ensure_venue_short_code(venue_id, max_attempts: int = 5) -> str:
    """Return the venue's short code, allocating one if it has none yet.

    The write only lands while the column is still NULL, so a concurrent
    allocator that got there first wins and its code is returned.
    """
    current = Venue.objects.values_list("short_code", flat=True).get(pk=venue_id)
    if current:
        return current
    for attempt in range(1, max_attempts + 1):
        candidate = generate_short_code()
        try:
            with transaction.atomic():
                updated = Venue.objects.filter(pk=venue_id, short_code__isnull=True).update(short_code=candidate)
        except IntegrityError:
            logger.info("short code collision for venue %s on attempt %d", venue_id, attempt)
            continue
        if updated == 1:
            return candidate
        current = Venue.objects.values_list("short_code", flat=True).get(pk=venue_id)
        if current:
            return current
    raise ShortCodeAllocationError(f"Failed to allocate a unique short code for venue {venue_id}")
