"""Contract shared by every generation backend."""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class DiagramProvider(Protocol):
    """One backend wrapped behind a single call.

    Implementations validate their settings in ``__init__`` (raising
    ``ConfigError``) and issue exactly one request per
    :meth:`generate_diagram`, raising ``BackendError`` on failure.
    """

    name: str
    config: Any

    async def generate_diagram(self, description: str) -> str:
        """Return normalized Mermaid markup for ``description``."""
        ...
