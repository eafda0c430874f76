from .base import (
    AudioPreset,
    Capabilities,
    InvalidConfigError,
    JobNotFoundError,
    JobOutput,
    JobStatus,
    MediaInfo,
    OutputFile,
    Preset,
    PresetMapNotFound,
    PresetNotFound,
    ProviderAlreadyRegistered,
    ProviderError,
    ProviderNotRegistered,
    Status,
    StreamingParams,
    TranscodeOutput,
    TranscodeProfile,
    TranscodingProvider,
    VideoPreset,
    is_terminal,
)
from .registry import get_provider_factory, provider_names, register

__all__ = [
    "AudioPreset",
    "Capabilities",
    "InvalidConfigError",
    "JobNotFoundError",
    "JobOutput",
    "JobStatus",
    "MediaInfo",
    "OutputFile",
    "Preset",
    "PresetMapNotFound",
    "PresetNotFound",
    "ProviderAlreadyRegistered",
    "ProviderError",
    "ProviderNotRegistered",
    "Status",
    "StreamingParams",
    "TranscodeOutput",
    "TranscodeProfile",
    "TranscodingProvider",
    "VideoPreset",
    "get_provider_factory",
    "is_terminal",
    "provider_names",
    "register",
]
