class DeployError(Exception):
    """
    Root of every error that aborts a deployment run.

    Each subclass names the phase it belongs to, so the CLI can print a single
    "phase: cause" line without needing to know about the subclass itself.
    """

    phase: str = "deploy"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return f"{self.phase}: {self.message}"


class ConfigError(DeployError):
    phase = "config"


class WalkError(DeployError):
    phase = "walk"


class HashError(DeployError):
    """
    A single file could not be compressed or hashed.
    """

    phase = "hash"

    def __init__(self, path: str, cause: BaseException):
        super().__init__(f"{path}: {cause}")
        self.path = path


class CompressionError(DeployError):
    phase = "compress"


class VersionCreateError(DeployError):
    phase = "create-version"


class ReconcileError(DeployError):
    phase = "populate"


class UploadError(DeployError):
    """
    A required content hash could not be uploaded.
    """

    phase = "upload"

    def __init__(self, content_hash: str, status: int | None, detail: str = ""):
        if status is not None:
            message = f"{content_hash} rejected with status {status}"
        else:
            message = f"{content_hash} failed"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.content_hash = content_hash
        self.status = status


class FinalizationError(DeployError):
    phase = "finalize"


class ReleaseError(DeployError):
    phase = "release"


class DeployCancelled(DeployError):
    phase = "cancelled"


class LifecycleError(DeployError):
    """
    A deployer step was called while the version was in the wrong state.
    """

    phase = "lifecycle"


class HostingError(Exception):
    """
    Raised by hosting clients for any remote failure.

    Carries the HTTP status where there was one; the deployer turns this into
    the phase-specific DeployError.
    """

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class CredentialsError(DeployError):
    phase = "auth"
