import logging
import os
import uuid
from django.core.files.storage import default_storage
from django.db import transaction
from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import ReadOnlyModelViewSet
from .models import DigitizationJob, Venue
from .serializers import DigitizationJobSerializer, ImageUrlsSerializer, MenuUpdateSerializer
from .services.menu_store import replace_job_menu, serialize_job_menu
from .services.publishing import publish_job
from .services.schemas import flatten_errors
from .services.shortcodes import ensure_venue_short_code
from .services.uploads import validate_file_count, validate_file_format, validate_file_size
from .tasks import process_digitization_job

logger = logging.getLogger(__name__)


class HealthView(APIView):
    def get(self, request): return Response({"status":"ok"})


class DigitizationJobViewSet(ReadOnlyModelViewSet):
    queryset = DigitizationJob.objects.all().order_by("-created_at")
    serializer_class = DigitizationJobSerializer


def _latest_job(venue):
    return DigitizationJob.objects.filter(venue=venue).order_by("-created_at").first()


class MenuUploadView(APIView):
    def post(self, request, venue_id):
        venue = get_object_or_404(Venue, pk=venue_id)
        files = request.FILES.getlist("files")
        if files:
            error = validate_file_count(len(files))
            for f in files:
                error = error or validate_file_format(f.content_type) or validate_file_size(f.size)
            if error: return Response({"detail":error}, status=status.HTTP_400_BAD_REQUEST)
            references = []
            for f in files:
                ext = os.path.splitext(f.name)[1] or (".png" if f.content_type == "image/png" else ".jpg")
                references.append(default_storage.save(f"menu/{venue.id}/{uuid.uuid4().hex}{ext}", f))
        else:
            if hasattr(request.data, "getlist"): image_urls = request.data.getlist("image_urls")
            elif isinstance(request.data, dict): image_urls = request.data.get("image_urls") or []
            else: image_urls = []
            urls = ImageUrlsSerializer(data={"image_urls": image_urls})
            if not urls.is_valid():
                return Response({"detail":"Invalid image_urls", "issues":flatten_errors(urls.errors)},
                                status=status.HTTP_400_BAD_REQUEST)
            references = urls.validated_data["image_urls"]
            error = validate_file_count(len(references))
            if error: return Response({"detail":error}, status=status.HTTP_400_BAD_REQUEST)
        with transaction.atomic():
            job = DigitizationJob.objects.create(venue=venue, image_references=references)
            transaction.on_commit(lambda: process_digitization_job.delay(str(job.id)))
        logger.info("queued digitization job %s for venue %s (%d images)", job.id, venue.id, len(references))
        return Response(DigitizationJobSerializer(job).data, status=status.HTTP_202_ACCEPTED)


class VenueMenuView(APIView):
    def get(self, request, venue_id):
        venue = get_object_or_404(Venue, pk=venue_id)
        short_code = venue.short_code or ensure_venue_short_code(venue.id)
        job = _latest_job(venue)
        if job is None:
            return Response({"shortCode":short_code, "job":None, "categories":[],
                             "stats":{"categoryCount":0, "itemCount":0}})
        categories = serialize_job_menu(job)
        return Response({
            "shortCode": short_code,
            "job": {"id":job.id, "status":job.status, "isPublished":job.is_published,
                    "createdAt":job.created_at, "errorMessage":job.error_message},
            "categories": categories,
            "stats": {"categoryCount":len(categories), "itemCount":sum(len(c["items"]) for c in categories)},
        })

    def patch(self, request, venue_id):
        venue = get_object_or_404(Venue, pk=venue_id)
        payload = MenuUpdateSerializer(data=request.data)
        if not payload.is_valid():
            return Response({"detail":"Invalid menu data", "issues":flatten_errors(payload.errors)},
                            status=status.HTTP_400_BAD_REQUEST)
        job = _latest_job(venue)
        if job is None:
            return Response({"detail":"No menu to update. Please upload a menu first."}, status=status.HTTP_404_NOT_FOUND)
        if job.status != DigitizationJob.COMPLETED:
            return Response({"detail":"Menu is not ready to edit yet. Please wait for digitization to complete."},
                            status=status.HTTP_400_BAD_REQUEST)
        replace_job_menu(job, payload.validated_data["categories"])
        return Response({"detail":"Menu updated successfully", "categories":serialize_job_menu(job)})


class PublishMenuView(APIView):
    def post(self, request, venue_id):
        venue = get_object_or_404(Venue, pk=venue_id)
        job = _latest_job(venue)
        if job is None:
            return Response({"detail":"No menu found to publish. Please upload a menu first."},
                            status=status.HTTP_404_NOT_FOUND)
        if job.status != DigitizationJob.COMPLETED:
            return Response({"detail":"Cannot publish an incomplete or failed menu."}, status=status.HTTP_400_BAD_REQUEST)
        if job.is_published:
            return Response({"detail":"Menu is already published", "jobId":job.id, "publishedAt":job.published_at})
        published_at = publish_job(venue.id, job.id)
        return Response({"detail":"Menu published successfully", "jobId":job.id, "publishedAt":published_at})


class PublicMenuView(APIView):
    def get(self, request, short_code):
        lookup = Q(short_code=short_code)
        try:
            lookup |= Q(pk=uuid.UUID(short_code))
        except ValueError:
            pass
        venue = Venue.objects.filter(lookup).first()
        if venue is None:
            return Response({"detail":"Venue not found"}, status=status.HTTP_404_NOT_FOUND)
        if not venue.short_code:
            venue.short_code = ensure_venue_short_code(venue.id)
        job = (DigitizationJob.objects.filter(venue=venue, is_published=True, status=DigitizationJob.COMPLETED)
               .order_by("-published_at").first())
        if job is None:
            return Response({"detail":"No published menu found"}, status=status.HTTP_404_NOT_FOUND)
        return Response({
            "venue": {"id":venue.id, "name":venue.name, "shortCode":venue.short_code},
            "categories": serialize_job_menu(job),
            "publishedAt": job.published_at,
        })
