"""Error types raised by the transport engine."""


class S3MoverError(Exception):
    """Base class for all s3mover errors."""


class ConfigError(S3MoverError):
    """Invalid settings or a failed startup check. Fatal."""


class ListError(S3MoverError):
    """The source directory could not be listed. Aborts one dispatch cycle."""


class JobError(S3MoverError):
    """A single upload job failed. The file is picked up again next cycle."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(message)
        self.path = path


class LoadError(JobError):
    """The local file could not be opened, read, or compressed."""


class UploadError(JobError):
    """The storage call failed. The local file is left in place."""


class CleanupError(JobError):
    """The object was stored but the local file could not be removed."""
