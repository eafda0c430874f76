from django.urls import path
from .views import (
    JobCancelView,
    JobCreateView,
    JobDetailView,
    PresetCreateView,
    PresetDetailView,
    ProviderDetailView,
    ProviderListView,
)

urlpatterns = [
    path("jobs", JobCreateView.as_view(), name="job_create"),
    path("jobs/<uuid:job_id>", JobDetailView.as_view(), name="job_detail"),
    path("jobs/<uuid:job_id>/cancel", JobCancelView.as_view(), name="job_cancel"),
    path("presets", PresetCreateView.as_view(), name="preset_create"),
    path("presets/<str:name>", PresetDetailView.as_view(), name="preset_detail"),
    path("providers", ProviderListView.as_view(), name="provider_list"),
    path("providers/<str:name>", ProviderDetailView.as_view(), name="provider_detail"),
]
