import posixpath


def strip_extension(name: str) -> str:
    """Drop the last extension: 'hls/index.m3u8' -> 'hls/index'."""
    return posixpath.splitext(name)[0]


def s3_uri(bucket: str, key: str) -> str:
    return f"s3://{bucket}/{key}"


def default_output_name(preset_name: str, container: str) -> str:
    """Output file name used when a job request doesn't name its outputs."""
    return f"{preset_name}.{container}" if container else preset_name
