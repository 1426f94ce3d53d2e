import logging
import threading
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Any

from hoist.backends.base import BaseHostingClient
from hoist.cancel import CancelToken
from hoist.catalog import FileCatalog
from hoist.constants import DEFAULT_UPLOAD_WORKERS, FINALIZED_STATUS, VersionState
from hoist.errors import (
    FinalizationError,
    HostingError,
    LifecycleError,
    ReconcileError,
    ReleaseError,
    UploadError,
    VersionCreateError,
)
from hoist.types import DeployResult, UploadRequirement

logger = logging.getLogger(__name__)


class Deployer:
    """
    Drives one version through create -> populate -> upload -> finalize ->
    release against a hosting client.

    Each step checks the version is in the state it expects, so the lifecycle
    can only move forwards and only one step at a time. Nothing is retried;
    the first failure raises and leaves the remote version where it was.
    """

    def __init__(
        self,
        client: BaseHostingClient,
        site: str,
        serving_config: dict[str, Any] | None = None,
        max_workers: int = DEFAULT_UPLOAD_WORKERS,
        cancel: CancelToken | None = None,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.client = client
        self.site = site
        self.serving_config = serving_config or {}
        self.max_workers = max_workers
        self.cancel = cancel or CancelToken()
        self.state: VersionState | None = None
        self.version_name: str | None = None
        self.release_name: str | None = None
        self.uploads_complete = False

    def __repr__(self):
        state = self.state.name if self.state else "NEW"
        return f"<Deployer {self.site} {self.version_name or '-'} {state}>"

    def _expect(self, state: VersionState | None, action: str):
        if self.state is not state:
            current = self.state.name if self.state else "not created"
            raise LifecycleError(f"cannot {action}: version is {current}")

    def create_version(self) -> str:
        self._expect(None, "create a version")
        self.cancel.check("creating a version")
        try:
            version_name = self.client.create_version(self.site, self.serving_config)
        except HostingError as e:
            raise VersionCreateError(f"{self.site}: {e}") from e
        self.version_name = version_name
        self.state = VersionState.CREATED
        logger.info(f"Created version {version_name}")
        return version_name

    def populate(self, catalog: FileCatalog) -> UploadRequirement:
        """
        Sends the manifest and returns what the service still needs.
        """
        self._expect(VersionState.CREATED, "populate files")
        self.cancel.check("populating files")
        try:
            requirement = self.client.populate_files(
                self.version_name, dict(catalog.manifest)
            )
        except HostingError as e:
            raise ReconcileError(f"{self.version_name}: {e}") from e
        unknown = [
            h for h in requirement["required_hashes"] if h not in catalog.content
        ]
        if unknown:
            raise ReconcileError(
                f"{self.version_name}: service asked for unknown content {unknown[0]}"
            )
        if requirement["required_hashes"] and not requirement["upload_url"]:
            raise ReconcileError(f"{self.version_name}: no upload URL given")
        self.state = VersionState.POPULATED
        logger.info(
            f"{len(requirement['required_hashes'])} of {len(catalog.content)} "
            f"contents need uploading"
        )
        return requirement

    def upload(self, requirement: UploadRequirement, catalog: FileCatalog) -> int:
        """
        Uploads every required hash exactly once, several at a time.

        The first failure stops any queued uploads, waits for in-flight ones
        to finish, then raises. Returns the number of contents uploaded.
        """
        self._expect(VersionState.POPULATED, "upload content")
        if self.uploads_complete:
            raise LifecycleError("cannot upload content: already uploaded")
        hashes = list(dict.fromkeys(requirement["required_hashes"]))
        if not hashes:
            logger.info("Nothing to upload")
            self.uploads_complete = True
            return 0
        upload_url = requirement["upload_url"]
        abort = threading.Event()
        pool = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(hashes)),
            thread_name_prefix="upload",
        )
        try:
            futures = [
                pool.submit(
                    self._upload_one,
                    abort,
                    upload_url,
                    content_hash,
                    catalog.content[content_hash],
                )
                for content_hash in hashes
            ]
            done, _ = wait(futures, return_when=FIRST_EXCEPTION)
        finally:
            pool.shutdown(wait=True, cancel_futures=True)
        # Report the failure that tripped the wait, in submission order
        for future in futures:
            if future in done and future.exception() is not None:
                raise future.exception()
        self.uploads_complete = True
        logger.info(f"Uploaded {len(hashes)} contents")
        return len(hashes)

    def _upload_one(
        self, abort: threading.Event, upload_url: str, content_hash: str, data: bytes
    ):
        # Another upload already failed; the run is over
        if abort.is_set():
            return
        try:
            self.cancel.check(f"uploading {content_hash}")
            self.client.upload_content(
                f"{upload_url}/{content_hash}", content_hash, data
            )
        except HostingError as e:
            abort.set()
            detail = "" if e.status is not None else str(e)
            raise UploadError(content_hash, e.status, detail) from e
        except BaseException:
            abort.set()
            raise
        logger.debug(f"Uploaded content {content_hash} ({len(data)} bytes)")

    def finalize(self) -> str:
        self._expect(VersionState.POPULATED, "finalize")
        if not self.uploads_complete:
            raise LifecycleError("cannot finalize: required content not uploaded")
        self.cancel.check("finalizing")
        try:
            status = self.client.finalize_version(self.version_name)
        except HostingError as e:
            raise FinalizationError(f"{self.version_name}: {e}") from e
        if status != FINALIZED_STATUS:
            raise FinalizationError(
                f"{self.version_name} reported status {status!r} after finalizing"
            )
        self.state = VersionState.FINALIZED
        logger.info(f"Finalized version {self.version_name}")
        return status

    def resume_finalized(self, version_name: str):
        """
        Picks up a version finalized by an earlier run whose release failed,
        so release() can be retried on its own.
        """
        self._expect(None, "resume a version")
        self.cancel.check("checking version status")
        try:
            status = self.client.version_status(version_name)
        except HostingError as e:
            raise ReleaseError(f"{version_name}: {e}") from e
        if status != FINALIZED_STATUS:
            raise ReleaseError(
                f"{version_name} is {status or 'unknown'}, not finalized"
            )
        self.version_name = version_name
        self.uploads_complete = True
        self.state = VersionState.FINALIZED

    def release(self) -> str:
        self._expect(VersionState.FINALIZED, "release")
        self.cancel.check("releasing")
        try:
            release_name = self.client.create_release(self.site, self.version_name)
        except HostingError as e:
            raise ReleaseError(f"{self.version_name}: {e}") from e
        self.release_name = release_name
        self.state = VersionState.RELEASED
        logger.info(f"Released {self.version_name} as {release_name}")
        return release_name

    def run(self, catalog: FileCatalog) -> DeployResult:
        """
        Runs every step in order for an already-built catalog.
        """
        version_name = self.create_version()
        requirement = self.populate(catalog)
        uploaded = self.upload(requirement, catalog)
        self.finalize()
        release_name = self.release()
        return DeployResult(
            version_name=version_name,
            release_name=release_name,
            file_count=len(catalog),
            uploaded_count=uploaded,
        )
