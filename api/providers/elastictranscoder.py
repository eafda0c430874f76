"""
AWS Elastic Transcoder provider.

Importing this module registers the provider under NAME. Jobs are submitted to
a single, pre-configured pipeline (ELASTICTRANSCODER_PIPELINE_ID); every output
key is namespaced under the broker's job id, and outputs using an MPEG-TS preset
are grouped into one HLSv3 playlist.
"""
import logging
import re

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError

from ..utils import s3_uri, strip_extension
from .base import (
    Capabilities,
    InvalidConfigError,
    JobNotFoundError,
    JobOutput,
    JobStatus,
    MediaInfo,
    OutputFile,
    PresetMapNotFound,
    ProviderError,
    Status,
    TranscodingProvider,
)
from .registry import register

logger = logging.getLogger(__name__)

NAME = "elastictranscoder"
DEFAULT_REGION = "us-east-1"
PLAYLIST_FORMAT = "HLSv3"
ADAPTIVE_STREAMING_CONTAINER = "ts"

_S3_PATTERN = re.compile(r"^s3://")

_STATUS_MAP = {
    "Submitted": Status.QUEUED,
    "Progressing": Status.STARTED,
    "Complete": Status.FINISHED,
    "Canceled": Status.CANCELED,
}

_VIDEO_CODECS = {"h264": "H.264"}
_AUDIO_CODECS = {"aac": "AAC"}

_COMPLETED_OUTPUT_STATUSES = (Status.FINISHED, Status.CANCELED, Status.FAILED)


def get_elastictranscoder_client(config):
    session = boto3.session.Session(
        aws_access_key_id=config.ELASTICTRANSCODER_ACCESS_KEY_ID,
        aws_secret_access_key=config.ELASTICTRANSCODER_SECRET_ACCESS_KEY,
        region_name=config.ELASTICTRANSCODER_REGION or DEFAULT_REGION,
    )
    return session.client(
        "elastictranscoder",
        endpoint_url=getattr(config, "ELASTICTRANSCODER_ENDPOINT_URL", None),
        config=BotoConfig(retries={"max_attempts": 3, "mode": "standard"}),
    )


def status_map(aws_status: str) -> Status:
    """Map an Elastic Transcoder job/output status onto the shared vocabulary."""
    return _STATUS_MAP.get(aws_status, Status.FAILED)


def normalize_source(source: str) -> str:
    """
    Turn "s3://bucket/path/to/file.mp4" into the pipeline-relative key
    "path/to/file.mp4". Bare keys are returned unchanged.
    """
    if _S3_PATTERN.match(source):
        source = source.replace("s3://", "", 1)
        return source.split("/", 1)[-1]
    return source


def _kbps(bitrate) -> str:
    try:
        bps = int(bitrate)
    except (TypeError, ValueError):
        bps = 0
    return str(bps // 1000)


class ElasticTranscoderProvider(TranscodingProvider):
    def __init__(self, client, pipeline_id: str):
        self.client = client
        self.pipeline_id = pipeline_id

    # -------------------------------------------------
    # Jobs
    # -------------------------------------------------
    def transcode(self, job, profile):
        streaming = profile.streaming_params
        outputs = []
        adaptive_keys = []
        for output in profile.outputs:
            preset_id = output.preset.provider_mapping.get(NAME)
            if not preset_id:
                raise PresetMapNotFound(output.preset.name, NAME)
            container = self._preset_container(preset_id)
            adaptive = container == ADAPTIVE_STREAMING_CONTAINER
            key = self.output_key(job, output.file_name, adaptive)
            job_output = {"Key": key, "PresetId": preset_id}
            if adaptive:
                job_output["SegmentDuration"] = str(int(streaming.segment_duration))
                adaptive_keys.append(key)
            outputs.append(job_output)

        params = {
            "PipelineId": self.pipeline_id,
            "Input": {"Key": normalize_source(profile.source_media)},
            "Outputs": outputs,
        }
        if adaptive_keys:
            params["Playlists"] = [{
                "Name": f"{job.id}/{strip_extension(streaming.playlist_file_name)}",
                "Format": PLAYLIST_FORMAT,
                "OutputKeys": adaptive_keys,
            }]

        resp = self.client.create_job(**params)
        provider_job_id = resp["Job"]["Id"]
        logger.info("Created Elastic Transcoder job %s for job %s", provider_job_id, job.id)
        return JobStatus(
            provider_name=NAME,
            provider_job_id=provider_job_id,
            status=Status.QUEUED,
        )

    def _preset_container(self, preset_id: str) -> str:
        preset = self.client.read_preset(Id=preset_id).get("Preset") or {}
        container = preset.get("Container")
        if not container:
            raise ProviderError(f"misconfigured preset: {preset_id}")
        return container

    @staticmethod
    def output_key(job, file_name: str, adaptive: bool) -> str:
        # Elastic Transcoder appends its own segment suffix to HLS outputs.
        if adaptive:
            file_name = strip_extension(file_name)
        return f"{job.id}/{file_name}"

    def job_status(self, job):
        try:
            resp = self.client.read_job(Id=job.provider_job_id)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == "ResourceNotFoundException":
                raise JobNotFoundError(job.provider_job_id) from exc
            raise
        aws_job = resp["Job"]

        outputs = aws_job.get("Outputs") or []
        completed = 0
        output_details = {}
        for output in outputs:
            if status_map(output.get("Status", "")) in _COMPLETED_OUTPUT_STATUSES:
                completed += 1
            output_details[output.get("Key", "")] = output.get("StatusDetail", "")
        progress = completed / len(outputs) * 100 if outputs else 0.0

        try:
            destination = self._output_destination(job, aws_job)
        except (ClientError, ProviderError) as exc:
            destination = str(exc)
        files = self._output_files(aws_job)

        detected = (aws_job.get("Input") or {}).get("DetectedProperties") or {}
        return JobStatus(
            provider_name=NAME,
            provider_job_id=aws_job["Id"],
            status=status_map(aws_job.get("Status", "")),
            progress=progress,
            provider_status={"outputs": output_details},
            media_info=MediaInfo(
                duration=detected.get("DurationMillis", 0) / 1000,
                width=detected.get("Width", 0),
                height=detected.get("Height", 0),
            ),
            output=JobOutput(destination=destination, files=files),
        )

    def _output_bucket(self, pipeline_id: str) -> str:
        pipeline = self.client.read_pipeline(Id=pipeline_id).get("Pipeline") or {}
        bucket = pipeline.get("OutputBucket")
        if not bucket:
            raise ProviderError(f"pipeline {pipeline_id} has no output bucket")
        return bucket

    def _output_destination(self, job, aws_job) -> str:
        return s3_uri(self._output_bucket(aws_job["PipelineId"]), str(job.id))

    def _output_files(self, aws_job) -> list:
        bucket = self._output_bucket(aws_job["PipelineId"])
        prefix = aws_job.get("OutputKeyPrefix", "")
        files = []
        for output in aws_job.get("Outputs") or []:
            preset = self.client.read_preset(Id=output["PresetId"])["Preset"]
            files.append(OutputFile(
                path=s3_uri(bucket, f"{prefix}{output.get('Key', '')}"),
                container=preset.get("Container", ""),
                video_codec=(preset.get("Video") or {}).get("Codec", ""),
                width=output.get("Width", 0),
                height=output.get("Height", 0),
            ))
        return files

    def cancel_job(self, provider_job_id):
        try:
            self.client.cancel_job(Id=provider_job_id)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == "ResourceNotFoundException":
                raise JobNotFoundError(provider_job_id) from exc
            raise

    # -------------------------------------------------
    # Presets
    # -------------------------------------------------
    def create_preset(self, preset):
        container = "ts" if preset.container == "m3u8" else preset.container
        resp = self.client.create_preset(
            Name=preset.name,
            Description=preset.description,
            Container=container,
            Video=self.video_params(preset),
            Audio=self.audio_params(preset),
            Thumbnails=self.thumbnail_params(preset),
        )
        return resp["Preset"]["Id"]

    @staticmethod
    def video_params(preset) -> dict:
        video = preset.video
        params = {
            "Codec": _VIDEO_CODECS.get(video.codec, video.codec),
            "KeyframesMaxDist": str(video.gop_size),
            "FixedGOP": "true" if video.gop_mode == "fixed" else "false",
            "BitRate": _kbps(video.bitrate),
            "FrameRate": "auto",
            "MaxWidth": video.width or "auto",
            "MaxHeight": video.height or "auto",
            "DisplayAspectRatio": "auto",
            "SizingPolicy": "Fill",
            "PaddingPolicy": "Pad",
        }
        if params["Codec"] == "H.264":
            params["CodecOptions"] = {
                "Profile": preset.profile.lower(),
                "Level": preset.profile_level,
                "MaxReferenceFrames": "2",
            }
        return params

    @staticmethod
    def audio_params(preset) -> dict:
        audio = preset.audio
        return {
            "Codec": _AUDIO_CODECS.get(audio.codec, audio.codec),
            "BitRate": _kbps(audio.bitrate),
            "Channels": "auto",
            "SampleRate": "auto",
        }

    @staticmethod
    def thumbnail_params(preset) -> dict:
        return {
            "Format": "png",
            "Interval": "1",
            "MaxWidth": "auto",
            "MaxHeight": "auto",
            "SizingPolicy": "Fill",
            "PaddingPolicy": "Pad",
        }

    def get_preset(self, preset_id):
        return self.client.read_preset(Id=preset_id)["Preset"]

    def delete_preset(self, preset_id):
        self.client.delete_preset(Id=preset_id)

    # -------------------------------------------------
    # Misc
    # -------------------------------------------------
    def healthcheck(self):
        self.client.read_pipeline(Id=self.pipeline_id)

    def capabilities(self):
        return Capabilities(
            input_formats=("h264",),
            output_formats=("mp4", "hls", "webm"),
            destinations=("s3",),
        )


def elastic_transcoder_provider(config):
    if not (
        config.ELASTICTRANSCODER_ACCESS_KEY_ID
        and config.ELASTICTRANSCODER_SECRET_ACCESS_KEY
        and config.ELASTICTRANSCODER_PIPELINE_ID
    ):
        raise InvalidConfigError(
            "invalid Elastic Transcoder config: set ELASTICTRANSCODER_ACCESS_KEY_ID, "
            "ELASTICTRANSCODER_SECRET_ACCESS_KEY and ELASTICTRANSCODER_PIPELINE_ID"
        )
    return ElasticTranscoderProvider(
        get_elastictranscoder_client(config),
        config.ELASTICTRANSCODER_PIPELINE_ID,
    )


register(NAME, elastic_transcoder_provider)
