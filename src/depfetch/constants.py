"""Constants used in the project."""

import os
from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    NOT_RESOLVED = 3
    CONFIG_ERROR = 4


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "DEPFETCH_LOG_LEVEL"
    ENV_LOCAL_REPO = "DEPFETCH_LOCAL_REPO"
    ENV_RELEASES_ONLY = "DEPFETCH_RELEASES_ONLY"
    ENV_CONFIG_FILE = "DEPFETCH_CONFIG"

    DEFAULT_LOCAL_REPO = os.path.join(os.path.expanduser("~"), ".m2", "repository")
    DEFAULT_CONFIG_FILE = os.path.join(os.path.expanduser("~"), ".depfetch", "repositories.yml")

    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    USER_AGENT = "depfetch/1.0"

    METADATA_FILE = "maven-metadata.xml"
    LOCAL_METADATA_FILE = "maven-metadata-local.xml"
    CHECKSUM_EXTENSION = ".sha1"
    LOCAL_REPOSITORY_ID = "local"
    SNAPSHOT_MARKER = "SNAPSHOT"
    DEFAULT_EXTENSION = "jar"

    # Used only to probe a repository; never expected to exist anywhere.
    PROBE_COORDINATE = "test:test:1.0"
