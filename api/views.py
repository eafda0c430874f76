from rest_framework import status, views
from rest_framework.response import Response

from . import service
from .errors import JobServiceError
from .serializers import (
    JobStatusSerializer,
    NewJobRequestSerializer,
    NewJobResponseSerializer,
    NewPresetRequestSerializer,
    PresetSerializer,
)


def error_response(exc: JobServiceError) -> Response:
    return Response({"error": str(exc)}, status=exc.status_code)


class JobCreateView(views.APIView):
    """
    Submits a transcoding job to the chosen provider.
    Responds right away with the job id; status callbacks (if any) run in the background.
    """

    def post(self, request):
        ser = NewJobRequestSerializer(data=request.data)
        if not ser.is_valid():
            return Response({"error": ser.errors}, status=status.HTTP_400_BAD_REQUEST)
        try:
            job = service.submit_job(**ser.to_submit_kwargs())
        except JobServiceError as e:
            return error_response(e)
        out = NewJobResponseSerializer({"job_id": job.id}).data
        return Response(out, status=status.HTTP_200_OK)


class JobDetailView(views.APIView):
    """Returns the job's current status, as reported by its provider."""

    def get(self, request, job_id):
        try:
            _, job_status = service.get_job_status(job_id)
        except JobServiceError as e:
            return error_response(e)
        return Response(JobStatusSerializer(job_status).data)


class JobCancelView(views.APIView):
    def post(self, request, job_id):
        try:
            job_status = service.cancel_job(job_id)
        except JobServiceError as e:
            return error_response(e)
        return Response(JobStatusSerializer(job_status).data)


class PresetCreateView(views.APIView):
    """Creates a preset on every listed provider and stores the provider mapping."""

    def post(self, request):
        ser = NewPresetRequestSerializer(data=request.data)
        if not ser.is_valid():
            return Response({"error": ser.errors}, status=status.HTTP_400_BAD_REQUEST)
        try:
            preset = service.create_preset(ser.preset_definition(), ser.validated_data["providers"])
        except JobServiceError as e:
            return error_response(e)
        return Response(PresetSerializer(preset).data, status=status.HTTP_201_CREATED)


class PresetDetailView(views.APIView):
    def get(self, request, name):
        try:
            preset = service.get_preset(name)
        except JobServiceError as e:
            return error_response(e)
        return Response(PresetSerializer(preset).data)

    def delete(self, request, name):
        try:
            errors = service.delete_preset(name)
        except JobServiceError as e:
            return error_response(e)
        return Response({"deleted": name, "provider_errors": errors})


class ProviderListView(views.APIView):
    def get(self, request):
        return Response(service.list_providers())


class ProviderDetailView(views.APIView):
    """Capabilities and health of a single provider."""

    def get(self, request, name):
        try:
            data = service.describe_provider(name)
        except JobServiceError as e:
            return error_response(e)
        return Response(data)
