"""
Types shared by every transcoding provider.

A provider is a backend that actually runs transcoding jobs (e.g. AWS Elastic
Transcoder). The broker only talks to providers through the TranscodingProvider
interface below, so adding a backend never touches the job workflows.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from django.db import models


class Status(models.TextChoices):
    QUEUED = "queued"
    STARTED = "started"
    FINISHED = "finished"
    FAILED = "failed"
    CANCELED = "canceled"


TERMINAL_STATUSES = frozenset({Status.FINISHED, Status.FAILED, Status.CANCELED})


def is_terminal(status) -> bool:
    return status in TERMINAL_STATUSES


# -----------------------------------------------------
# Errors
# -----------------------------------------------------
class ProviderError(Exception):
    """Base class for every error raised by the provider layer."""


class ProviderNotRegistered(ProviderError):
    def __init__(self, name: str):
        super().__init__(f"provider not registered: {name!r}")
        self.name = name


class ProviderAlreadyRegistered(ProviderError):
    def __init__(self, name: str):
        super().__init__(f"provider already registered: {name!r}")
        self.name = name


class InvalidConfigError(ProviderError):
    """The provider was built with missing or incomplete credentials/config."""


class PresetNotFound(ProviderError):
    pass


class PresetMapNotFound(PresetNotFound):
    """A preset has no identifier mapped for the provider in use."""

    def __init__(self, preset_name: str, provider_name: str):
        super().__init__(f"preset {preset_name!r} has no mapping for provider {provider_name!r}")
        self.preset_name = preset_name
        self.provider_name = provider_name


class JobNotFoundError(ProviderError):
    """The provider no longer knows about the given job id."""

    def __init__(self, provider_job_id: str):
        super().__init__(f"job not found in the provider: {provider_job_id!r}")
        self.provider_job_id = provider_job_id


# -----------------------------------------------------
# Presets & transcode profiles
# -----------------------------------------------------
@dataclass
class VideoPreset:
    codec: str = ""
    bitrate: str = ""          # bits per second
    width: str = ""
    height: str = ""
    gop_size: str = ""
    gop_mode: str = ""         # "fixed" | ""
    interlace_mode: str = ""


@dataclass
class AudioPreset:
    codec: str = ""
    bitrate: str = ""          # bits per second


@dataclass
class Preset:
    name: str
    description: str = ""
    container: str = ""
    profile: str = ""
    profile_level: str = ""
    rate_control: str = ""
    video: VideoPreset = field(default_factory=VideoPreset)
    audio: AudioPreset = field(default_factory=AudioPreset)
    provider_mapping: dict = field(default_factory=dict)


@dataclass
class StreamingParams:
    protocol: str = ""
    segment_duration: int = 0
    playlist_file_name: str = ""


@dataclass
class TranscodeOutput:
    file_name: str
    preset: Preset


@dataclass
class TranscodeProfile:
    source_media: str
    presets: list
    outputs: list
    streaming_params: StreamingParams = field(default_factory=StreamingParams)


# -----------------------------------------------------
# Job status
# -----------------------------------------------------
@dataclass
class MediaInfo:
    duration: float = 0.0      # seconds
    width: int = 0
    height: int = 0


@dataclass
class OutputFile:
    path: str
    container: str = ""
    video_codec: str = ""
    width: int = 0
    height: int = 0


@dataclass
class JobOutput:
    destination: str = ""
    files: list = field(default_factory=list)


@dataclass
class JobStatus:
    provider_job_id: str
    status: Status
    provider_name: str = ""
    progress: float = 0.0
    provider_status: dict = field(default_factory=dict)
    media_info: MediaInfo = field(default_factory=MediaInfo)
    output: JobOutput = field(default_factory=JobOutput)


@dataclass(frozen=True)
class Capabilities:
    input_formats: tuple = ()
    output_formats: tuple = ()
    destinations: tuple = ()


# -----------------------------------------------------
# Provider interface
# -----------------------------------------------------
class TranscodingProvider(ABC):
    """Operations every transcoding backend has to support."""

    @abstractmethod
    def transcode(self, job, profile: TranscodeProfile) -> JobStatus:
        """
        Submit a new job to the backend and return its initial status.

        `job` is the (not yet saved) Job record; its id namespaces the output keys.
        Raises PresetMapNotFound when a preset lacks a mapping for this provider.
        """

    @abstractmethod
    def job_status(self, job) -> JobStatus:
        """Raises JobNotFoundError when the backend no longer knows the job."""

    @abstractmethod
    def create_preset(self, preset: Preset) -> str:
        """Create the preset on the backend and return the backend's preset id."""

    @abstractmethod
    def get_preset(self, preset_id: str) -> dict:
        ...

    @abstractmethod
    def delete_preset(self, preset_id: str) -> None:
        ...

    @abstractmethod
    def cancel_job(self, provider_job_id: str) -> None:
        ...

    @abstractmethod
    def healthcheck(self) -> None:
        """Raise if the backend is unreachable or misconfigured."""

    @abstractmethod
    def capabilities(self) -> Capabilities:
        ...
