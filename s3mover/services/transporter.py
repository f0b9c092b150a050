"""Transporter: moves files from a local directory to S3.

Each dispatch cycle rescans the source directory, uploads every candidate
file with at most ``max_parallels`` uploads in flight, removes the files that
were stored successfully, and waits for the whole batch before returning.
The supervisor repeats cycles until the stop event is set.
"""

import io
import logging
import os
import stat
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime

from mypy_boto3_s3 import S3Client

from s3mover.config import Settings
from s3mover.services import s3_service
from s3mover.services.buffer_pool import BufferPool
from s3mover.services.errors import (
    CleanupError,
    ConfigError,
    JobError,
    ListError,
    LoadError,
    UploadError,
)
from s3mover.services.keygen import generate_key
from s3mover.services.log_service import get_log_service
from s3mover.services.metrics import Metrics
from s3mover.services.payload import load_payload
from s3mover.services.stats_server import StatsServer
from s3mover.services.utils import format_file_size, s3_url

logger = logging.getLogger(__name__)

# Interval between cycles when there is nothing to do or something failed
RETRY_WAIT = 1.0

# Marker in the key of the startup probe object
TEST_OBJECT_KEY = ".s3mover-test-object"
TEST_OBJECT_BODY = b"test"

# Probe file created and removed in the source directory at startup
START_PROBE_NAME = ".start"


def list_files(directory: str) -> list[str]:
    """List upload candidates in a directory.

    Only regular files are listed; names starting with "." are skipped.
    Subdirectories are not traversed.

    Returns:
        Sorted list of file paths

    Raises:
        ListError: If the directory cannot be read
    """
    try:
        with os.scandir(directory) as it:
            entries = list(it)
    except OSError as e:
        raise ListError(f"failed to list {directory}: {e}") from e

    paths = []
    for entry in entries:
        if entry.name.startswith("."):
            continue
        # Directories, FIFOs, sockets and devices are never candidates
        try:
            if not entry.is_file():
                continue
        except OSError:
            # Vanished between scandir and stat
            continue
        paths.append(os.path.join(directory, entry.name))
    return sorted(paths)


class Transporter:
    """Moves files from ``settings.src_dir`` into ``settings.bucket``."""

    def __init__(
        self,
        settings: Settings,
        s3_client: S3Client | None = None,
        metrics: Metrics | None = None,
        stop_event: threading.Event | None = None,
    ) -> None:
        self.settings = settings
        if s3_client is None:
            s3_client = s3_service.create_s3_client(
                settings.aws_profile, settings.aws_region, settings.endpoint_url
            )
        self.s3_client = s3_client
        self.metrics = metrics or Metrics()
        self.stop_event = stop_event or threading.Event()
        self.tz = settings.tz
        self.buffer_pool = BufferPool()
        self.semaphore = threading.BoundedSemaphore(settings.max_parallels)
        self.start_file = os.path.join(settings.src_dir, START_PROBE_NAME)
        self.log = get_log_service()

    def stop(self) -> None:
        """Request shutdown. Uploads already in flight are allowed to finish."""
        self.stop_event.set()

    @property
    def stopped(self) -> bool:
        return self.stop_event.is_set()

    def sleep(self, seconds: float) -> bool:
        """Sleep, waking early if stop() is called.

        Returns:
            True if the sleep was interrupted by a stop request
        """
        return self.stop_event.wait(seconds)

    def run(self) -> None:
        """Check the environment, then transport files until stopped.

        Raises:
            ConfigError: If the startup checks fail
        """
        self.init()
        self.log.info(
            "transport",
            "startup",
            "Starting up transporter",
            {
                "src_dir": self.settings.src_dir,
                "bucket": self.settings.bucket,
                "prefix": self.settings.prefix,
                "max_parallels": self.settings.max_parallels,
                "gzip": self.settings.gzip,
            },
        )

        stats_server = None
        if self.settings.stats_port:
            stats_server = StatsServer(self.metrics, self.settings.stats_port)
            try:
                stats_server.start()
            except OSError as e:
                # The transporter keeps working without its stats endpoint
                self.log.error(
                    "stats",
                    "stats_server_failed",
                    f"Failed to start stats server: {e}",
                    {"port": self.settings.stats_port, "error": str(e)},
                )
                stats_server = None

        try:
            self.supervise()
        finally:
            if stats_server is not None:
                stats_server.shutdown()
            self.log.info("transport", "shutdown", "Transporter stopped")

    def init(self) -> None:
        """Verify the source directory and the bucket before starting.

        Raises:
            ConfigError: If the directory is unusable or the bucket is not writable
        """
        src_dir = self.settings.src_dir
        try:
            st = os.stat(src_dir)
        except OSError as e:
            raise ConfigError(f"failed to stat {src_dir}: {e}") from e
        if not stat.S_ISDIR(st.st_mode):
            raise ConfigError(f"{src_dir} is not a directory")

        try:
            with open(self.start_file, "w"):
                pass
        except OSError as e:
            raise ConfigError(f"failed to create {self.start_file}: {e}") from e
        try:
            os.remove(self.start_file)
        except OSError as e:
            raise ConfigError(f"failed to remove {self.start_file}: {e}") from e

        # Check that the bucket exists and we have permission to write
        key = generate_key(
            self.settings.prefix,
            TEST_OBJECT_KEY,
            datetime.now(UTC),
            False,
            self.settings.time_format,
            self.tz,
        )
        try:
            result = s3_service.put_object(
                self.s3_client,
                self.settings.bucket,
                key,
                io.BytesIO(TEST_OBJECT_BODY),
                len(TEST_OBJECT_BODY),
            )
        except Exception as e:
            raise ConfigError(f"failed to put object to {self.settings.bucket}: {e}") from e
        if not result["success"]:
            raise ConfigError(f"failed to put object to {self.settings.bucket}: {result['error']}")

        self.log.info(
            "transport",
            "init_completed",
            "Source directory and bucket are ready",
            {"src_dir": src_dir, "probe_key": key},
        )

    def supervise(self) -> None:
        """Run dispatch cycles until stopped."""
        while not self.stopped:
            try:
                processed, total = self.run_once()
            except ListError as e:
                self.log.warning(
                    "transport",
                    "list_failed",
                    f"Retry after {RETRY_WAIT:g}s: {e}",
                    {"error": str(e)},
                )
                self.sleep(RETRY_WAIT)
                continue

            if total == 0:
                logger.debug("No files to upload")
                self.sleep(RETRY_WAIT)
                continue

            if processed == total:
                # Backlog may remain; scan again immediately
                self.log.info(
                    "transport",
                    "cycle_completed",
                    "Succeeded to transport all files",
                    {"processed": processed, "total": total},
                )
            else:
                self.log.warning(
                    "transport",
                    "cycle_partial",
                    "Some files are remaining",
                    {"processed": processed, "total": total},
                )
                self.sleep(RETRY_WAIT)

    def run_once(self) -> tuple[int, int]:
        """Upload every candidate currently in the source directory.

        Returns only after every job of the cycle has finished.

        Returns:
            (number of files transported, number of candidates)

        Raises:
            ListError: If the source directory cannot be listed
        """
        paths = list_files(self.settings.src_dir)
        if not paths:
            return 0, 0

        total = len(paths)
        self.metrics.set_queued(total)

        with ThreadPoolExecutor(
            max_workers=self.settings.max_parallels, thread_name_prefix="upload"
        ) as executor:
            futures = []
            for path in paths:
                self.semaphore.acquire()
                try:
                    futures.append(executor.submit(self._run_job, path))
                except RuntimeError:
                    self.semaphore.release()
                    raise

            processed = sum(1 for future in futures if future.result())

        return processed, total

    def _run_job(self, path: str) -> bool:
        """Process one file and record the outcome. Runs on a worker thread."""
        try:
            self.process(path)
        except JobError as e:
            self.metrics.put_object(False)
            self.log.warning(
                "transport",
                "file_upload_failed",
                str(e),
                {"path": path, "error_type": type(e).__name__},
            )
            return False
        except Exception as e:
            self.metrics.put_object(False)
            logger.exception("Unexpected error processing %s", path)
            self.log.error(
                "transport",
                "file_upload_failed",
                f"Unexpected error processing {path}: {e}",
                {"path": path, "error_type": type(e).__name__},
            )
            return False
        else:
            self.metrics.put_object(True)
            return True
        finally:
            self.metrics.complete_queued()
            self.semaphore.release()

    def process(self, path: str) -> str:
        """Upload one file and remove it locally.

        Returns:
            The object key the file was stored under

        Raises:
            LoadError: If the file cannot be read
            UploadError: If the storage call fails (the file is kept)
            CleanupError: If the file was stored but cannot be removed
        """
        logger.debug("Processing %s", path)
        settings = self.settings

        try:
            payload = load_payload(path, settings.gzip, settings.gzip_level, self.buffer_pool)
        except OSError as e:
            raise LoadError(path, f"failed to open file {path}: {e}") from e

        try:
            key = generate_key(
                settings.prefix,
                os.path.basename(path),
                payload.mod_time,
                settings.gzip,
                settings.time_format,
                self.tz,
            )
            url = s3_url(settings.bucket, key)
            logger.debug("Uploading %s to %s (%d bytes)", path, url, payload.length)
            try:
                result = s3_service.put_object(
                    self.s3_client, settings.bucket, key, payload.body, payload.length
                )
            except Exception as e:
                raise UploadError(path, f"failed to upload {path}: {e}") from e
        finally:
            payload.close()

        if not result["success"]:
            raise UploadError(path, f"failed to upload {path}: {result['error']}")

        self.log.info(
            "transport",
            "file_uploaded",
            f"Upload completed {url} ({format_file_size(payload.length)})",
            {"s3url": url, "size": payload.length},
        )

        try:
            os.remove(path)
        except OSError as e:
            raise CleanupError(path, f"failed to remove file {path}: {e}") from e
        logger.debug("Removed %s", path)
        return key
