"""
Job and preset workflows.

Views and the status callback task go through these functions; they resolve
providers from the registry on every call (provider instances are never cached)
and translate provider/store failures into api.errors classes.
"""
import logging
from dataclasses import asdict

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import DatabaseError

from .errors import Conflict, InvalidJob, InvalidRequest, JobGone, JobNotFound, NotFound, ServiceFailure
from .models import Job, Preset
from .providers import (
    InvalidConfigError,
    JobNotFoundError,
    PresetNotFound,
    ProviderNotRegistered,
    StreamingParams,
    TranscodeOutput,
    TranscodeProfile,
    get_provider_factory,
    provider_names,
)
from .utils import default_output_name

logger = logging.getLogger(__name__)


def _new_provider(name: str, *, unknown_exc=InvalidRequest, invalid_config_exc=InvalidRequest):
    try:
        factory = get_provider_factory(name)
    except ProviderNotRegistered as e:
        raise unknown_exc(str(e)) from e
    try:
        return factory(settings)
    except InvalidConfigError as e:
        raise invalid_config_exc(f"Error initializing provider {name!r}: {e}") from e
    except Exception as e:
        raise ServiceFailure(f"Error initializing provider {name!r}: {e}") from e


# -----------------------------------------------------
# Jobs
# -----------------------------------------------------
def _resolve_presets(names) -> dict:
    resolved = {}
    for name in names:
        if name in resolved:
            continue
        try:
            resolved[name] = Preset.objects.get(pk=name).as_preset()
        except Preset.DoesNotExist:
            raise InvalidJob(f"preset not found: {name!r}") from None
        except DatabaseError as e:
            raise ServiceFailure(f"error retrieving preset {name!r}: {e}") from e
    return resolved


def submit_job(
    *,
    provider: str,
    source: str,
    presets=(),
    outputs=None,
    streaming_params: StreamingParams | None = None,
    status_callback_url: str = "",
    completion_callback_url: str = "",
    status_callback_interval: int | None = None,
) -> Job:
    """
    Submit a transcoding job to `provider` and persist it.

    `outputs` is an optional list of {"preset", "file_name"} dicts; without it one
    output per preset is produced, named after the preset. When a callback URL is
    given, status delivery starts in the background and this call returns right away.
    """
    provider_obj = _new_provider(provider, unknown_exc=InvalidJob, invalid_config_exc=InvalidJob)

    outputs = list(outputs or [])
    preset_names = [o["preset"] for o in outputs] or list(presets)
    if not preset_names:
        raise InvalidJob("at least one preset is required")
    resolved = _resolve_presets(preset_names)

    if outputs:
        transcode_outputs = [
            TranscodeOutput(
                file_name=o.get("file_name") or default_output_name(o["preset"], resolved[o["preset"]].container),
                preset=resolved[o["preset"]],
            )
            for o in outputs
        ]
    else:
        transcode_outputs = [
            TranscodeOutput(file_name=default_output_name(p.name, p.container), preset=p)
            for p in resolved.values()
        ]

    streaming = streaming_params or StreamingParams()
    streaming = StreamingParams(
        protocol=streaming.protocol,
        segment_duration=streaming.segment_duration or settings.DEFAULT_SEGMENT_DURATION,
        playlist_file_name=streaming.playlist_file_name or settings.DEFAULT_PLAYLIST_FILE_NAME,
    )
    profile = TranscodeProfile(
        source_media=source,
        presets=list(resolved.values()),
        outputs=transcode_outputs,
        streaming_params=streaming,
    )

    job = Job(
        provider_name=provider,
        status_callback_url=status_callback_url or "",
        completion_callback_url=completion_callback_url or "",
        status_callback_interval=status_callback_interval or settings.DEFAULT_STATUS_CALLBACK_INTERVAL,
    )
    if streaming.protocol:
        job.streaming_protocol = streaming.protocol
        job.segment_duration = streaming.segment_duration
        job.playlist_file_name = streaming.playlist_file_name

    try:
        job_status = provider_obj.transcode(job, profile)
    except PresetNotFound as e:
        raise InvalidJob(str(e)) from e
    except Exception as e:
        raise ServiceFailure(f"Error with provider {provider!r} on job {job.id}: {e}") from e

    job.provider_job_id = job_status.provider_job_id
    try:
        job.save(force_insert=True)
    except DatabaseError as e:
        raise ServiceFailure(f"error saving job {job.id}: {e}") from e
    logger.info("Created job %s (provider=%s, provider_job_id=%s)", job.id, provider, job.provider_job_id)

    if job.has_callbacks:
        # Import here to avoid circular imports
        from .tasks import start_status_callbacks

        start_status_callbacks(job)
    return job


def get_job(job_id) -> Job:
    try:
        return Job.objects.get(pk=job_id)
    except (Job.DoesNotExist, ValidationError):
        raise JobNotFound(job_id) from None
    except DatabaseError as e:
        raise ServiceFailure(f"error retrieving job with id {job_id!r}: {e}") from e


def _provider_for_job(job: Job):
    # A job whose provider disappeared from the registry is a deployment problem,
    # not a client error.
    return _new_provider(
        job.provider_name,
        unknown_exc=ServiceFailure,
        invalid_config_exc=ServiceFailure,
    )


def query_job_status(job: Job):
    provider_obj = _provider_for_job(job)
    try:
        job_status = provider_obj.job_status(job)
    except JobNotFoundError as e:
        raise JobGone(
            f"Error with provider {job.provider_name!r} when trying to retrieve job id {job.id}: {e}"
        ) from e
    except Exception as e:
        raise ServiceFailure(
            f"Error with provider {job.provider_name!r} when trying to retrieve job id {job.id}: {e}"
        ) from e
    job_status.provider_name = job.provider_name
    return job_status


def get_job_status(job_id):
    """Return (job, current JobStatus) for the given job id."""
    job = get_job(job_id)
    return job, query_job_status(job)


def cancel_job(job_id):
    job = get_job(job_id)
    provider_obj = _provider_for_job(job)
    try:
        provider_obj.cancel_job(job.provider_job_id)
    except JobNotFoundError as e:
        raise JobGone(
            f"Error with provider {job.provider_name!r} when trying to cancel job id {job.id}: {e}"
        ) from e
    except Exception as e:
        raise ServiceFailure(
            f"Error with provider {job.provider_name!r} when trying to cancel job id {job.id}: {e}"
        ) from e
    logger.info("Canceled job %s", job.id)
    return query_job_status(job)


# -----------------------------------------------------
# Presets
# -----------------------------------------------------
def get_preset(name: str) -> Preset:
    try:
        return Preset.objects.get(pk=name)
    except Preset.DoesNotExist:
        raise NotFound(f"preset not found: {name!r}") from None


def create_preset(definition: dict, providers) -> Preset:
    """
    Create the preset on every provider in `providers` and store the resulting
    provider mapping. Presets already created are removed again if a later
    provider fails.
    """
    if Preset.objects.filter(pk=definition["name"]).exists():
        raise Conflict(f"preset already exists: {definition['name']!r}")

    preset = Preset(**definition)
    value = preset.as_preset()
    provider_objs = {name: _new_provider(name) for name in providers}

    mapping = {}
    for name, provider_obj in provider_objs.items():
        try:
            mapping[name] = provider_obj.create_preset(value)
        except Exception as e:
            _rollback_presets(provider_objs, mapping)
            raise ServiceFailure(f"Error creating preset {value.name!r} on provider {name!r}: {e}") from e

    preset.provider_mapping = mapping
    preset.save(force_insert=True)
    logger.info("Created preset %s on providers %s", preset.name, sorted(mapping))
    return preset


def _rollback_presets(provider_objs: dict, mapping: dict) -> None:
    for name, preset_id in mapping.items():
        try:
            provider_objs[name].delete_preset(preset_id)
        except Exception as e:
            logger.warning("Could not remove preset %s from provider %r: %s", preset_id, name, e)


def delete_preset(name: str) -> dict:
    """Delete the preset everywhere. Returns {provider: error message} for failed removals."""
    preset = get_preset(name)
    errors = {}
    for provider_name, preset_id in (preset.provider_mapping or {}).items():
        try:
            _new_provider(provider_name).delete_preset(preset_id)
        except Exception as e:
            logger.warning("Could not delete preset %s (%s) from provider %r: %s", name, preset_id, provider_name, e)
            errors[provider_name] = str(e)
    preset.delete()
    return errors


# -----------------------------------------------------
# Providers
# -----------------------------------------------------
def list_providers() -> list:
    return provider_names()


def describe_provider(name: str) -> dict:
    try:
        factory = get_provider_factory(name)
    except ProviderNotRegistered as e:
        raise NotFound(str(e)) from e
    try:
        provider_obj = factory(settings)
    except InvalidConfigError as e:
        return {"name": name, "enabled": False, "capabilities": None, "health": {"ok": False, "message": str(e)}}

    health = {"ok": True, "message": ""}
    try:
        provider_obj.healthcheck()
    except Exception as e:
        health = {"ok": False, "message": str(e)}
    return {
        "name": name,
        "enabled": True,
        "capabilities": asdict(provider_obj.capabilities()),
        "health": health,
    }
