from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import (DigitizationJobViewSet, HealthView, MenuUploadView, PublicMenuView, PublishMenuView,
                    VenueMenuView)
router = DefaultRouter()
router.register(r"jobs", DigitizationJobViewSet, basename="job")
urlpatterns = [
    path("healthz/", HealthView.as_view()),
    path("venues/<uuid:venue_id>/menu/", VenueMenuView.as_view(), name="venue-menu"),
    path("venues/<uuid:venue_id>/menu/upload/", MenuUploadView.as_view(), name="venue-menu-upload"),
    path("venues/<uuid:venue_id>/menu/publish/", PublishMenuView.as_view(), name="venue-menu-publish"),
    path("menu/<str:short_code>/", PublicMenuView.as_view(), name="public-menu"),
    path("", include(router.urls)),
]
