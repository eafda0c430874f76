"""Shared fixtures: an isolated provider registry and a scriptable fake provider."""

from __future__ import annotations

import pytest

from api.models import Preset
from api.providers import Capabilities, JobStatus, Status, TranscodingProvider
from api.providers.registry import ProviderRegistry


class FakeProvider(TranscodingProvider):
    """In-memory provider; `statuses` is consumed one entry per job_status() call."""

    def __init__(self, statuses=None, transcode_error=None, status_error=None, health_error=None, cancel_error=None):
        self.statuses = list(statuses or [])
        self.transcode_error = transcode_error
        self.status_error = status_error
        self.health_error = health_error
        self.cancel_error = cancel_error
        self.transcoded = []
        self.presets = {}
        self.canceled = []

    def transcode(self, job, profile):
        if self.transcode_error:
            raise self.transcode_error
        self.transcoded.append((job, profile))
        return JobStatus(provider_name="fake", provider_job_id=f"fake-{len(self.transcoded)}", status=Status.QUEUED)

    def job_status(self, job):
        if self.status_error:
            raise self.status_error
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        return JobStatus(provider_job_id=job.provider_job_id, status=status)

    def create_preset(self, preset):
        preset_id = f"fake-{preset.name}"
        self.presets[preset_id] = preset
        return preset_id

    def get_preset(self, preset_id):
        return self.presets[preset_id]

    def delete_preset(self, preset_id):
        del self.presets[preset_id]

    def cancel_job(self, provider_job_id):
        if self.cancel_error:
            raise self.cancel_error
        self.canceled.append(provider_job_id)

    def healthcheck(self):
        if self.health_error:
            raise self.health_error

    def capabilities(self):
        return Capabilities(input_formats=("mp4",), output_formats=("mp4",), destinations=("s3",))


@pytest.fixture
def provider_registry(monkeypatch):
    """Replace the process-wide registry with an empty, unfrozen one."""
    registry = ProviderRegistry()
    monkeypatch.setattr("api.providers.registry.registry", registry)
    return registry


@pytest.fixture
def fake_provider(provider_registry):
    provider = FakeProvider(statuses=[Status.QUEUED])
    provider_registry.register("fake", lambda config: provider)
    return provider


@pytest.fixture
def preset_mp4(db):
    return Preset.objects.create(
        name="mp4_720p",
        container="mp4",
        profile="Main",
        profile_level="3.1",
        video={"codec": "h264", "bitrate": "2500000", "width": "1280", "height": "720", "gop_size": "90"},
        audio={"codec": "aac", "bitrate": "128000"},
        provider_mapping={"fake": "fake-mp4", "elastictranscoder": "1351620000001-000010"},
    )


@pytest.fixture
def preset_hls(db):
    return Preset.objects.create(
        name="hls_480p",
        container="m3u8",
        profile="Main",
        profile_level="3.1",
        video={"codec": "h264", "bitrate": "1000000", "height": "480", "gop_size": "90", "gop_mode": "fixed"},
        audio={"codec": "aac", "bitrate": "64000"},
        provider_mapping={"fake": "fake-hls", "elastictranscoder": "1351620000001-200040"},
    )
