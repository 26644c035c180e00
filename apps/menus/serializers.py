from rest_framework import serializers
from .models import DigitizationJob, Venue
from .services.schemas import MAX_STORED_INT, MenuCategorySchema, MenuItemSchema, StrictIntegerField


class VenueSerializer(serializers.ModelSerializer):
    class Meta:
        model = Venue
        fields = ["id", "name", "short_code"]


class DigitizationJobSerializer(serializers.ModelSerializer):
    class Meta:
        model = DigitizationJob
        fields = ["id", "venue", "status", "is_published", "published_at", "error_message",
                  "image_references", "created_at", "updated_at"]
        read_only_fields = fields


class MenuItemUpdateSerializer(MenuItemSchema):
    order = StrictIntegerField(min_value=0, max_value=MAX_STORED_INT, required=False)


class MenuCategoryUpdateSerializer(MenuCategorySchema):
    order = StrictIntegerField(min_value=0, max_value=MAX_STORED_INT, required=False)
    items = MenuItemUpdateSerializer(many=True)


class MenuUpdateSerializer(serializers.Serializer):
    categories = MenuCategoryUpdateSerializer(many=True)


class ImageUrlsSerializer(serializers.Serializer):
    image_urls = serializers.ListField(child=serializers.URLField(), allow_empty=True)
