"""Load a local file as an upload payload, optionally gzip-compressed."""

import gzip
import io
import os
import shutil
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import BinaryIO

from s3mover.services.buffer_pool import BufferPool

DEFAULT_GZIP_LEVEL = 6


@dataclass
class Payload:
    """Body, length and source modification time of one upload."""

    body: BinaryIO
    length: int
    mod_time: datetime

    def close(self) -> None:
        """Close the underlying body."""
        self.body.close()


def load_payload(
    path: str,
    gzip_enabled: bool,
    gzip_level: int,
    pool: BufferPool,
) -> Payload:
    """Open a file for upload.

    Without gzip the open file itself is the body and nothing is read into
    memory. With gzip the whole file is compressed into a pooled buffer and
    the body is a BytesIO over a copy of the compressed bytes; the pooled
    buffer is back in the pool when this function returns.

    Args:
        path: Local file path
        gzip_enabled: Compress the content with gzip
        gzip_level: gzip compression level (1-9)
        pool: Buffer pool used for compression

    Returns:
        Payload whose body the caller must close

    Raises:
        OSError: If the file cannot be opened, statted, or read
    """
    f = open(path, "rb")
    try:
        stat = os.fstat(f.fileno())
    except OSError:
        f.close()
        raise
    mod_time = datetime.fromtimestamp(stat.st_mtime, tz=UTC)

    if not gzip_enabled:
        return Payload(body=f, length=stat.st_size, mod_time=mod_time)

    with f, pool.checkout() as buf:
        with gzip.GzipFile(fileobj=buf, mode="wb", compresslevel=gzip_level) as gz:
            shutil.copyfileobj(f, gz)
        compressed = buf.getvalue()

    return Payload(body=io.BytesIO(compressed), length=len(compressed), mod_time=mod_time)
