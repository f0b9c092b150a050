"""Object key generation."""

import posixpath
from datetime import datetime, tzinfo

# strftime pattern used when no time format is configured
DEFAULT_TIME_FORMAT = "%Y/%m/%d/%H/%M"

GZIP_SUFFIX = ".gz"


def generate_key(
    prefix: str,
    filename: str,
    timestamp: datetime,
    gzip_enabled: bool,
    time_format: str = "",
    tz: tzinfo | None = None,
) -> str:
    """Build the S3 key for a file.

    The key is ``prefix/<timestamp formatted in tz>/filename``, with ``.gz``
    appended when the payload is gzip-compressed. ``tz=None`` means the
    process local time zone. Naive timestamps are taken as local time.

    Args:
        prefix: Key prefix; an empty prefix contributes nothing
        filename: Base name of the local file, used verbatim
        timestamp: Modification time of the local file
        gzip_enabled: Whether the payload is gzip-compressed
        time_format: strftime pattern; empty selects DEFAULT_TIME_FORMAT
        tz: Time zone the timestamp is converted to before formatting

    Returns:
        The object key
    """
    if not time_format:
        time_format = DEFAULT_TIME_FORMAT
    formatted = timestamp.astimezone(tz).strftime(time_format)
    key = posixpath.join(prefix, formatted, filename)
    if gzip_enabled:
        return key + GZIP_SUFFIX
    return key
