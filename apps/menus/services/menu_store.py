from typing import Any, Dict, List

from django.db import transaction

from ..models import DigitizationJob, MenuCategory, MenuItem

ITEM_FIELDS = (
    ("originalName", "original_name"), ("nameEn", "name_en"), ("nameRu", "name_ru"),
    ("descriptionEn", "description_en"), ("descriptionRu", "description_ru"),
    ("priceValue", "price_value"), ("priceCurrency", "price_currency"), ("isSpicy", "is_spicy"),
    ("approxCalories", "approx_calories"), ("isLocalSpecial", "is_local_special"),
)
ITEM_DEFAULTS = {"descriptionEn": None, "descriptionRu": None, "priceValue": None, "priceCurrency": "IDR",
                 "isSpicy": False, "approxCalories": None, "isLocalSpecial": False}


def replace_job_menu(job: DigitizationJob, categories: List[Dict[str, Any]]) -> None:
    """Swap the job's categories and items for ``categories`` (canonical camelCase dicts)."""
    with transaction.atomic():
        MenuItem.objects.filter(job=job).delete()
        MenuCategory.objects.filter(job=job).delete()
        for position, data in enumerate(categories):
            category = MenuCategory.objects.create(
                job=job, venue_id=job.venue_id,
                name_en=data["nameEn"], name_original=data.get("nameOriginal"), name_ru=data["nameRu"],
                order=data.get("order", position),
            )
            items = []
            for item_position, item in enumerate(data.get("items", [])):
                values = {**ITEM_DEFAULTS, **item}
                items.append(MenuItem(
                    category=category, job=job, venue_id=job.venue_id,
                    order=item.get("order", item_position),
                    **{column: values[key] for key, column in ITEM_FIELDS},
                ))
            MenuItem.objects.bulk_create(items)


def serialize_job_menu(job: DigitizationJob) -> List[Dict[str, Any]]:
    categories = []
    for category in job.categories.prefetch_related("items").order_by("order", "id"):
        items = []
        for item in sorted(category.items.all(), key=lambda i: (i.order, i.id)):
            entry = {"id": item.id, **{key: getattr(item, column) for key, column in ITEM_FIELDS}, "order": item.order}
            items.append(entry)
        categories.append({
            "id": category.id, "nameEn": category.name_en, "nameOriginal": category.name_original,
            "nameRu": category.name_ru, "order": category.order, "items": items,
        })
    return categories
