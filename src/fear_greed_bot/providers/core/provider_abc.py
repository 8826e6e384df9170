"""Base class for external collaborators that hold network resources."""
from abc import ABC, abstractmethod


class ProviderABC(ABC):
    """Async context manager that releases resources via close()."""

    @abstractmethod
    async def close(self) -> None:
        """Release resources (e.g. httpx clients)."""

    async def __aenter__(self) -> "ProviderABC":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        """Async context manager exit - calls close()."""
        await self.close()
