import re

import pytest

from apps.menus.models import Venue
from apps.menus.services import shortcodes
from apps.menus.services.shortcodes import ShortCodeAllocationError, ensure_venue_short_code, generate_short_code

pytestmark = pytest.mark.django_db


def test_generated_codes_are_url_safe_and_eight_chars():
    for _ in range(50):
        assert re.fullmatch(r"[A-Za-z0-9_-]{8}", generate_short_code())


def test_allocates_and_persists_code(venue):
    code = ensure_venue_short_code(venue.id)
    venue.refresh_from_db()
    assert venue.short_code == code
    assert ensure_venue_short_code(venue.id) == code


def test_existing_code_is_returned(venue):
    Venue.objects.filter(pk=venue.id).update(short_code="abcdEFGH")
    assert ensure_venue_short_code(venue.id) == "abcdEFGH"


def test_collision_regenerates(venue, monkeypatch):
    Venue.objects.create(name="Taken", short_code="TAKEN001")
    candidates = iter(["TAKEN001", "FRESH002"])
    monkeypatch.setattr(shortcodes, "generate_short_code", lambda: next(candidates))
    assert ensure_venue_short_code(venue.id) == "FRESH002"


def test_gives_up_after_bounded_attempts(venue, monkeypatch):
    Venue.objects.create(name="Taken", short_code="TAKEN001")
    monkeypatch.setattr(shortcodes, "generate_short_code", lambda: "TAKEN001")
    with pytest.raises(ShortCodeAllocationError):
        ensure_venue_short_code(venue.id, max_attempts=3)
    venue.refresh_from_db()
    assert venue.short_code is None


def test_concurrent_winner_is_returned(venue, monkeypatch):
    def racing_generator():
        Venue.objects.filter(pk=venue.id).update(short_code="WINNER99")
        return "LOSER000"

    monkeypatch.setattr(shortcodes, "generate_short_code", racing_generator)
    assert ensure_venue_short_code(venue.id) == "WINNER99"


def test_missing_venue_raises(db):
    with pytest.raises(Venue.DoesNotExist):
        ensure_venue_short_code("00000000-0000-0000-0000-000000000000")
