"""Secret source reader for volume-mounted credentials.

A secrets manager (Vault agent, Kubernetes secret volume, ...) writes one value
per file into a base directory:

    <base>/username
    <base>/password
    <base>/jdbc-url    (optional)

Every read goes back to storage; nothing is cached here because the whole
point is to observe rotations made by someone else.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..config import get_secrets_path
from ..exceptions import SecretUnavailable
from .models import CredentialPair

logger = logging.getLogger(__name__)

USERNAME = "username"
PASSWORD = "password"
JDBC_URL = "jdbc-url"


class SecretSourceReader:
    """Reads trimmed UTF-8 secret values from a mounted directory."""

    def __init__(self, base_path: Optional[Union[str, Path]] = None):
        """Initialize reader.

        Args:
            base_path: Directory holding the secret files. Defaults to the
                configured K8S_SECRETS_PATH.
        """
        self.base_path = Path(base_path) if base_path is not None else get_secrets_path()

    def path_for(self, name: str) -> Path:
        """Resolve the file for a logical secret name."""
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise ValueError(f"Invalid secret name: {name!r}")
        return self.base_path / name

    def read(self, name: str) -> str:
        """Read a secret value fresh from disk.

        Args:
            name: Logical secret name (username, password, jdbc-url)

        Returns:
            File contents decoded as UTF-8 with surrounding whitespace removed

        Raises:
            SecretUnavailable: If the file is missing, unreadable or not UTF-8
        """
        path = self.path_for(name)
        try:
            value = path.read_text(encoding="utf-8").strip()
        except FileNotFoundError as e:
            raise SecretUnavailable(name, path, "file not found") from e
        except (OSError, UnicodeDecodeError) as e:
            raise SecretUnavailable(name, path, str(e)) from e

        logger.debug(f"Read {name} from {self.base_path}")
        return value

    def read_credentials(self) -> CredentialPair:
        """Read username and password and build a complete pair.

        Raises:
            SecretUnavailable: If either file cannot be read
        """
        username = self.read(USERNAME)
        password = self.read(PASSWORD)
        return CredentialPair(username=username, password=password)


class FileCredentialsProvider:
    """Pull-style provider that re-reads the mounted files on every call.

    Used when a pool should pick up rotated credentials by itself for each new
    physical connection, without a coordinator in between. Failures are hard:
    a pool opening a connection cannot proceed without credentials.
    """

    def __init__(self, reader: Optional[SecretSourceReader] = None):
        self.reader = reader or SecretSourceReader()

    def provide_credentials(self) -> CredentialPair:
        pair = self.reader.read_credentials()
        logger.info(f"Providing credentials for user: {pair.username}")
        return pair

    def connection_url(self) -> str:
        """Read the connection URL from the jdbc-url file.

        The URL is read on every access and is not part of rotation change
        detection. ``create_rotating_engine(None, provider)`` builds its engine
        from this value.
        """
        return self.reader.read(JDBC_URL)
