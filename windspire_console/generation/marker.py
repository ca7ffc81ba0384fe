# windspire_console/generation/marker.py
"""
Durable "a batch may still be running" flag.

Set when a batch starts, cleared when it finishes. A marker found at startup
is surfaced to the operator as a warning; it never triggers a resume and is
only cleared by an explicit acknowledgement.
"""

import logging

from windspire_console.models.store import FlagStore

logger = logging.getLogger(__name__)

MARKER_KEY = "windspire-generation-in-progress"

PREVIOUS_BATCH_WARNING = (
    "A previous generation batch may still be running or was interrupted. "
    "Check the content list for new items."
)


class InProgressMarker:
    """Boolean-as-string flag stored under a fixed key."""

    def __init__(self, flags: FlagStore, key: str = MARKER_KEY) -> None:
        self._flags = flags
        self._key = key

    async def set(self) -> None:
        await self._flags.set(self._key, "true")

    async def clear(self) -> None:
        await self._flags.remove(self._key)

    async def is_set(self) -> bool:
        return (await self._flags.get(self._key)) == "true"

    async def check_on_startup(self) -> str | None:
        """
        Report a leftover marker from a previous process.

        Returns:
            Operator warning if the marker is set, None otherwise
        """
        if await self.is_set():
            logger.warning(PREVIOUS_BATCH_WARNING)
            return PREVIOUS_BATCH_WARNING
        return None
