import uuid
from django.db import models

from .providers import AudioPreset, Preset as ProviderPreset, StreamingParams, VideoPreset


class Preset(models.Model):
    name = models.CharField(max_length=128, primary_key=True)
    description = models.TextField(blank=True, default="")
    container = models.CharField(max_length=16)
    profile = models.CharField(max_length=32, blank=True, default="")
    profile_level = models.CharField(max_length=16, blank=True, default="")
    rate_control = models.CharField(max_length=16, blank=True, default="")
    video = models.JSONField(default=dict, blank=True)      # {codec, bitrate, width, height, gop_size, gop_mode, interlace_mode}
    audio = models.JSONField(default=dict, blank=True)      # {codec, bitrate}
    # provider name -> that provider's preset id
    provider_mapping = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def as_preset(self) -> ProviderPreset:
        video = self.video or {}
        audio = self.audio or {}
        return ProviderPreset(
            name=self.name,
            description=self.description,
            container=self.container,
            profile=self.profile,
            profile_level=self.profile_level,
            rate_control=self.rate_control,
            video=VideoPreset(**{k: str(v) for k, v in video.items() if k in VideoPreset.__dataclass_fields__}),
            audio=AudioPreset(**{k: str(v) for k, v in audio.items() if k in AudioPreset.__dataclass_fields__}),
            provider_mapping=dict(self.provider_mapping or {}),
        )


class Job(models.Model):
    # The id is assigned on instantiation so providers can namespace output keys
    # under it before the row is saved.
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    provider_name = models.CharField(max_length=64)
    provider_job_id = models.CharField(max_length=256, blank=True, default="")

    status_callback_url = models.URLField(max_length=1024, blank=True, default="")
    completion_callback_url = models.URLField(max_length=1024, blank=True, default="")
    status_callback_interval = models.PositiveIntegerField(default=5)  # seconds

    streaming_protocol = models.CharField(max_length=16, blank=True, default="")
    segment_duration = models.PositiveIntegerField(default=0)
    playlist_file_name = models.CharField(max_length=256, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def has_callbacks(self) -> bool:
        return bool(self.status_callback_url or self.completion_callback_url)

    @property
    def streaming_params(self) -> StreamingParams:
        return StreamingParams(
            protocol=self.streaming_protocol,
            segment_duration=self.segment_duration,
            playlist_file_name=self.playlist_file_name,
        )
