"""Tests for the HTTP endpoints."""

from __future__ import annotations

import uuid
from unittest.mock import patch

import pytest
from rest_framework.test import APIClient

from api.models import Job
from api.providers import JobNotFoundError, ProviderError, Status

pytestmark = pytest.mark.django_db


@pytest.fixture
def client():
    return APIClient()


class TestJobs:
    def test_create(self, client, fake_provider, preset_mp4):
        with patch("api.tasks.start_status_callbacks") as start:
            resp = client.post(
                "/jobs",
                {
                    "provider": "fake",
                    "source": "s3://bucket/video.mov",
                    "presets": ["mp4_720p", "mp4_720p"],
                    "status_callback_url": "https://example.com/status",
                    "status_callback_interval": 2,
                },
                format="json",
            )

        assert resp.status_code == 200
        job = Job.objects.get(pk=resp.json()["job_id"])
        assert job.status_callback_url == "https://example.com/status"
        assert len(fake_provider.transcoded[0][1].outputs) == 1
        start.assert_called_once()

    def test_create_with_streaming_params(self, client, fake_provider, preset_hls):
        resp = client.post(
            "/jobs",
            {
                "provider": "fake",
                "source": "video.mov",
                "outputs": [{"preset": "hls_480p", "file_name": "hls/480p.m3u8"}],
                "streaming_params": {"protocol": "HLS", "segment_duration": 6, "playlist_file_name": "hls/index.m3u8"},
            },
            format="json",
        )

        assert resp.status_code == 200
        _, profile = fake_provider.transcoded[0]
        assert profile.streaming_params.protocol == "hls"
        assert profile.streaming_params.segment_duration == 6
        assert profile.outputs[0].file_name == "hls/480p.m3u8"

    def test_create_invalid_payload(self, client, fake_provider):
        resp = client.post("/jobs", {"provider": "fake", "source": "video.mov"}, format="json")

        assert resp.status_code == 400
        assert Job.objects.count() == 0

    def test_create_unknown_preset(self, client, fake_provider):
        resp = client.post("/jobs", {"provider": "fake", "source": "video.mov", "presets": ["nope"]}, format="json")

        assert resp.status_code == 400
        assert "preset not found" in resp.json()["error"]

    def test_create_provider_error(self, client, fake_provider, preset_mp4):
        fake_provider.transcode_error = ProviderError("backend down")

        resp = client.post("/jobs", {"provider": "fake", "source": "video.mov", "presets": ["mp4_720p"]}, format="json")

        assert resp.status_code == 500

    def test_get(self, client, fake_provider):
        job = Job.objects.create(provider_name="fake", provider_job_id="provider-job-1")
        fake_provider.statuses = [Status.STARTED]

        resp = client.get(f"/jobs/{job.id}")

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "started"
        assert data["provider_name"] == "fake"
        assert data["provider_job_id"] == "provider-job-1"
        assert data["output"] == {"destination": "", "files": []}
        assert data["media_info"] == {"duration": 0.0, "width": 0, "height": 0}

    def test_get_missing(self, client, fake_provider):
        resp = client.get(f"/jobs/{uuid.uuid4()}")

        assert resp.status_code == 404

    def test_get_gone(self, client, fake_provider):
        job = Job.objects.create(provider_name="fake", provider_job_id="provider-job-1")
        fake_provider.status_error = JobNotFoundError("provider-job-1")

        resp = client.get(f"/jobs/{job.id}")

        assert resp.status_code == 410

    def test_get_provider_error(self, client, fake_provider):
        job = Job.objects.create(provider_name="fake", provider_job_id="provider-job-1")
        fake_provider.status_error = ProviderError("timeout")

        resp = client.get(f"/jobs/{job.id}")

        assert resp.status_code == 500

    def test_cancel(self, client, fake_provider):
        job = Job.objects.create(provider_name="fake", provider_job_id="provider-job-1")
        fake_provider.statuses = [Status.CANCELED]

        resp = client.post(f"/jobs/{job.id}/cancel")

        assert resp.status_code == 200
        assert resp.json()["status"] == "canceled"

    def test_cancel_gone(self, client, fake_provider):
        job = Job.objects.create(provider_name="fake", provider_job_id="provider-job-1")
        fake_provider.cancel_error = JobNotFoundError("provider-job-1")

        resp = client.post(f"/jobs/{job.id}/cancel")

        assert resp.status_code == 410

    def test_cancel_missing(self, client, fake_provider):
        assert client.post(f"/jobs/{uuid.uuid4()}/cancel").status_code == 404


class TestPresets:
    payload = {
        "providers": ["fake"],
        "preset": {
            "name": "mp4_1080p",
            "container": "mp4",
            "profile": "High",
            "profile_level": "4.0",
            "video": {"codec": "h264", "bitrate": "3500000", "width": "1920", "height": "1080"},
            "audio": {"codec": "aac", "bitrate": "128000"},
        },
    }

    def test_create_get_delete(self, client, fake_provider):
        resp = client.post("/presets", self.payload, format="json")
        assert resp.status_code == 201
        assert resp.json()["provider_mapping"] == {"fake": "fake-mp4_1080p"}

        resp = client.get("/presets/mp4_1080p")
        assert resp.status_code == 200
        assert resp.json()["video"]["codec"] == "h264"

        resp = client.delete("/presets/mp4_1080p")
        assert resp.status_code == 200
        assert client.get("/presets/mp4_1080p").status_code == 404

    def test_create_duplicate(self, client, fake_provider):
        client.post("/presets", self.payload, format="json")

        resp = client.post("/presets", self.payload, format="json")

        assert resp.status_code == 409

    def test_create_invalid(self, client, fake_provider):
        resp = client.post("/presets", {"providers": [], "preset": {"name": "x"}}, format="json")

        assert resp.status_code == 400


class TestProviders:
    def test_list(self, client, fake_provider):
        resp = client.get("/providers")

        assert resp.json() == ["fake"]

    def test_detail(self, client, fake_provider):
        resp = client.get("/providers/fake")

        assert resp.status_code == 200
        data = resp.json()
        assert data["health"]["ok"] is True
        assert data["capabilities"]["destinations"] == ["s3"]

    def test_detail_unknown(self, client, fake_provider):
        assert client.get("/providers/nope").status_code == 404
