"""Sources for the shared API secret."""

from abc import ABC, abstractmethod
from pathlib import Path

from config import Settings


class SecretStore(ABC):
    """Interface for fetching the API secret from wherever it is kept."""

    @abstractmethod
    async def get(self) -> str:
        """Return the current secret value, or an empty string when unset."""


class EnvSecretStore(SecretStore):
    def __init__(self, value: str):
        self._value = value

    async def get(self) -> str:
        return self._value


class FileSecretStore(SecretStore):
    """Reads the first line of a mounted secret file (e.g. /run/secrets/api_secret)."""

    def __init__(self, path: str):
        self.path = Path(path)

    async def get(self) -> str:
        # Read once per process by the auth gate, so a blocking read is acceptable.
        content = self.path.read_text(encoding="utf-8")
        lines = content.splitlines()
        return lines[0].strip() if lines else ""


def build_secret_store(settings: Settings) -> SecretStore:
    if settings.api_secret_file:
        return FileSecretStore(settings.api_secret_file)
    return EnvSecretStore(settings.api_secret)
