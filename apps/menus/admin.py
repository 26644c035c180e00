from django.contrib import admin
from .models import DigitizationJob, MenuCategory, MenuItem, Venue


@admin.register(Venue)
class VenueAdmin(admin.ModelAdmin):
    list_display = ("name", "short_code", "created_at")
    search_fields = ("name", "short_code")


@admin.register(DigitizationJob)
class DigitizationJobAdmin(admin.ModelAdmin):
    list_display = ("id", "venue", "status", "is_published", "published_at", "created_at")
    list_filter = ("status", "is_published")
    readonly_fields = ("raw_ocr_response", "raw_llm_response", "image_references")


admin.site.register(MenuCategory)
admin.site.register(MenuItem)
