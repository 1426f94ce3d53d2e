import enum

API_ROOT = "https://firebasehosting.googleapis.com/v1beta1"

AUTH_SCOPES = [
    "https://www.googleapis.com/auth/cloud-platform",
    "https://www.googleapis.com/auth/firebase",
]

FINALIZED_STATUS = "FINALIZED"

GZIP_LEVEL = 6

DEFAULT_UPLOAD_WORKERS = 8
DEFAULT_REQUEST_TIMEOUT = 60


class VersionState(enum.Enum):
    CREATED = 1
    POPULATED = 2
    FINALIZED = 3
    RELEASED = 4  # Not a remote version state; marks that a release exists
