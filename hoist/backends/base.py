from typing import Any

from hoist.types import Manifest, UploadRequirement


class BaseHostingClient:
    """
    Root hosting client class that defines the calls a deployment makes.

    The hosting service owns versions and releases; a client only asks it to
    create, populate, finalize and release them. Contents are addressed purely
    by hash, so uploading the same hash twice is harmless but wasteful, and
    nothing here needs any locking.

    Any remote failure should raise HostingError (with the HTTP status if there
    was one). upload_content() will be called from several threads at once, so
    implementations must be thread-safe there.
    """

    name: str = "base"

    def create_version(self, site: str, serving_config: dict[str, Any]) -> str:
        """
        Creates a new, empty version for the site carrying the given serving
        config, and returns its opaque version name.
        """
        raise NotImplementedError()

    def populate_files(
        self, version_name: str, manifest: Manifest
    ) -> UploadRequirement:
        """
        Sends the full path -> hash manifest for the version and returns which
        of those hashes the service does not yet hold, plus where to send them.
        """
        raise NotImplementedError()

    def upload_content(self, endpoint: str, content_hash: str, data: bytes):
        """
        Sends one compressed content blob to endpoint.

        Blocks until complete; raises HostingError on anything but success.
        """
        raise NotImplementedError()

    def finalize_version(self, version_name: str) -> str:
        """
        Asks for the version to be finalized and returns the status the service
        reports back afterwards.
        """
        raise NotImplementedError()

    def version_status(self, version_name: str) -> str:
        """
        Returns the current status of an existing version.
        """
        raise NotImplementedError()

    def create_release(self, site: str, version_name: str) -> str:
        """
        Publishes the version as the site's live release and returns the
        release name.
        """
        raise NotImplementedError()
