"""Media host protocol definition."""

from dataclasses import dataclass
from typing import Protocol


class MediaHostError(Exception):
    """Raised when the media host rejects or fails an operation."""

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation.capitalize()} failed: {message}")
        self.operation = operation
        self.message = message


@dataclass(frozen=True)
class HostedImage:
    """Result of a successful upload."""

    url: str
    public_id: str


class MediaHost(Protocol):
    """Protocol defining the interface for media hosts.

    Implementations store image bytes on a third-party service and hand back
    a publicly addressable URL. The gallery service never talks to a
    concrete SDK directly.
    """

    async def upload(self, payload: str) -> HostedImage:
        """Upload one image payload.

        Args:
            payload: Remote image URL or inline ``data:`` URI

        Returns:
            HostedImage: Public URL and the host's identifier for the asset

        Raises:
            MediaHostError: If the host rejects the upload
        """
        ...

    async def destroy(self, public_id: str) -> bool:
        """Delete a hosted asset.

        Args:
            public_id: Host identifier recorded at upload time

        Returns:
            bool: True if the asset was deleted, False if the host did not know it

        Raises:
            MediaHostError: If the host call fails
        """
        ...
