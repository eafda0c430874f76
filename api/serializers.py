from rest_framework import serializers
from .models import Job, Preset
from .providers import StreamingParams

ALLOWED_STREAMING_PROTOCOLS = {"hls"}


# -----------------------------------------------------
# Job status (GET /jobs/<id> and callback payloads)
# -----------------------------------------------------
class MediaInfoSerializer(serializers.Serializer):
    duration = serializers.FloatField()
    width = serializers.IntegerField()
    height = serializers.IntegerField()


class OutputFileSerializer(serializers.Serializer):
    path = serializers.CharField()
    container = serializers.CharField()
    video_codec = serializers.CharField()
    width = serializers.IntegerField()
    height = serializers.IntegerField()


class JobOutputSerializer(serializers.Serializer):
    destination = serializers.CharField()
    files = OutputFileSerializer(many=True)


class JobStatusSerializer(serializers.Serializer):
    provider_name = serializers.CharField()
    provider_job_id = serializers.CharField()
    status = serializers.CharField()
    progress = serializers.FloatField()
    provider_status = serializers.DictField()
    media_info = MediaInfoSerializer()
    output = JobOutputSerializer()


class JobSerializer(serializers.ModelSerializer):
    class Meta:
        model = Job
        fields = [
            "id",
            "provider_name",
            "provider_job_id",
            "status_callback_url",
            "completion_callback_url",
            "status_callback_interval",
            "streaming_protocol",
            "segment_duration",
            "created_at",
        ]


# -----------------------------------------------------
# Job submission
# -----------------------------------------------------
class StreamingParamsSerializer(serializers.Serializer):
    protocol = serializers.CharField(required=False, allow_blank=True, default="")
    segment_duration = serializers.IntegerField(required=False, min_value=1)
    playlist_file_name = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_protocol(self, value):
        value = value.lower()
        if value and value not in ALLOWED_STREAMING_PROTOCOLS:
            raise serializers.ValidationError(
                f"Unsupported protocol: {value}. Allowed: {sorted(ALLOWED_STREAMING_PROTOCOLS)}"
            )
        return value

    def create(self, validated_data):
        return StreamingParams(
            protocol=validated_data.get("protocol", ""),
            segment_duration=validated_data.get("segment_duration", 0),
            playlist_file_name=validated_data.get("playlist_file_name", ""),
        )


class OutputRequestSerializer(serializers.Serializer):
    preset = serializers.CharField()
    file_name = serializers.CharField(required=False, allow_blank=True)


class NewJobRequestSerializer(serializers.Serializer):
    provider = serializers.CharField()
    source = serializers.CharField()
    presets = serializers.ListField(child=serializers.CharField(), required=False, allow_empty=True)
    outputs = OutputRequestSerializer(many=True, required=False)
    streaming_params = StreamingParamsSerializer(required=False)
    status_callback_url = serializers.URLField(required=False, allow_blank=True)
    completion_callback_url = serializers.URLField(required=False, allow_blank=True)
    status_callback_interval = serializers.IntegerField(required=False, min_value=1)

    def validate_presets(self, value):
        """De-duplicate while preserving order."""
        seen = set()
        deduped = []
        for s in value:
            if s not in seen:
                seen.add(s)
                deduped.append(s)
        return deduped

    def validate(self, attrs):
        if not attrs.get("presets") and not attrs.get("outputs"):
            raise serializers.ValidationError("Provide at least one preset or output.")
        return attrs

    def to_submit_kwargs(self) -> dict:
        data = dict(self.validated_data)
        streaming = data.pop("streaming_params", None)
        if streaming is not None:
            data["streaming_params"] = StreamingParamsSerializer().create(streaming)
        if "outputs" in data:
            data["outputs"] = [dict(o) for o in data["outputs"]]
        return data


class NewJobResponseSerializer(serializers.Serializer):
    job_id = serializers.UUIDField()


# -----------------------------------------------------
# Presets
# -----------------------------------------------------
class VideoPresetSerializer(serializers.Serializer):
    codec = serializers.CharField()
    bitrate = serializers.CharField()
    width = serializers.CharField(required=False, allow_blank=True, default="")
    height = serializers.CharField(required=False, allow_blank=True, default="")
    gop_size = serializers.CharField(required=False, allow_blank=True, default="")
    gop_mode = serializers.CharField(required=False, allow_blank=True, default="")
    interlace_mode = serializers.CharField(required=False, allow_blank=True, default="")


class AudioPresetSerializer(serializers.Serializer):
    codec = serializers.CharField()
    bitrate = serializers.CharField()


class PresetDefinitionSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=128)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    container = serializers.CharField(max_length=16)
    profile = serializers.CharField(required=False, allow_blank=True, default="")
    profile_level = serializers.CharField(required=False, allow_blank=True, default="")
    rate_control = serializers.CharField(required=False, allow_blank=True, default="")
    video = VideoPresetSerializer()
    audio = AudioPresetSerializer()


class NewPresetRequestSerializer(serializers.Serializer):
    providers = serializers.ListField(child=serializers.CharField(), allow_empty=False)
    preset = PresetDefinitionSerializer()

    def preset_definition(self) -> dict:
        definition = dict(self.validated_data["preset"])
        definition["video"] = dict(definition["video"])
        definition["audio"] = dict(definition["audio"])
        return definition


class PresetSerializer(serializers.ModelSerializer):
    class Meta:
        model = Preset
        fields = [
            "name",
            "description",
            "container",
            "profile",
            "profile_level",
            "rate_control",
            "video",
            "audio",
            "provider_mapping",
            "created_at",
            "updated_at",
        ]
