"""Small formatting helpers shared by the services."""


def format_file_size(size_bytes: int) -> str:
    """Format a byte count for log messages (e.g. "1.5 KB")."""
    size = float(size_bytes)
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if abs(size) < 1024.0:
            return f"{size:.1f} {unit}"
        size /= 1024.0
    return f"{size:.1f} PB"


def s3_url(bucket: str, key: str) -> str:
    """Return the s3:// URL of an object."""
    return f"s3://{bucket}/{key}"
