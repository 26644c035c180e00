import uuid
from django.db import models


class InvalidTransition(Exception):
    pass


class Venue(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    short_code = models.CharField(max_length=8, unique=True, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    def __str__(self): return self.name


class DigitizationJob(models.Model):
    QUEUED, PROCESSING, COMPLETED, FAILED = "QUEUED","PROCESSING","COMPLETED","FAILED"
    STATUSES = [(s, s) for s in (QUEUED, PROCESSING, COMPLETED, FAILED)]
    TERMINAL = (COMPLETED, FAILED)
    _RANK = {QUEUED: 0, PROCESSING: 1, COMPLETED: 2, FAILED: 2}
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    venue = models.ForeignKey(Venue, related_name="menu_jobs", on_delete=models.PROTECT)
    status = models.CharField(max_length=16, choices=STATUSES, default=QUEUED, db_index=True)
    is_published = models.BooleanField(default=False, db_index=True)
    error_message = models.TextField(null=True, blank=True)
    raw_ocr_response = models.TextField(null=True, blank=True)
    raw_llm_response = models.TextField(null=True, blank=True)
    image_references = models.JSONField(default=list)
    published_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self): return f"{self.id} [{self.status}]"

    def advance(self, status: str) -> None:
        """Move the job forward; statuses never go backwards and terminal ones are final."""
        if self.status in self.TERMINAL or self._RANK[status] <= self._RANK[self.status]:
            raise InvalidTransition(f"{self.status} -> {status}")
        self.status = status


class MenuCategory(models.Model):
    job = models.ForeignKey(DigitizationJob, related_name="categories", on_delete=models.CASCADE)
    venue = models.ForeignKey(Venue, related_name="menu_categories", on_delete=models.PROTECT)
    name_en = models.CharField(max_length=255)
    name_original = models.CharField(max_length=255, null=True, blank=True)
    name_ru = models.CharField(max_length=255)
    order = models.PositiveIntegerField(default=0, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["order", "id"]

    def __str__(self): return self.name_en


class MenuItem(models.Model):
    category = models.ForeignKey(MenuCategory, related_name="items", on_delete=models.CASCADE)
    job = models.ForeignKey(DigitizationJob, related_name="items", on_delete=models.CASCADE)
    venue = models.ForeignKey(Venue, related_name="menu_items", on_delete=models.PROTECT)
    original_name = models.CharField(max_length=255)
    name_en = models.CharField(max_length=255)
    name_ru = models.CharField(max_length=255)
    description_en = models.TextField(null=True, blank=True)
    description_ru = models.TextField(null=True, blank=True)
    price_value = models.PositiveIntegerField(null=True, blank=True)
    price_currency = models.CharField(max_length=8, default="IDR")
    is_spicy = models.BooleanField(default=False)
    approx_calories = models.PositiveIntegerField(null=True, blank=True)
    is_local_special = models.BooleanField(default=False)
    order = models.PositiveIntegerField(default=0, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["order", "id"]

    def __str__(self): return self.name_en
