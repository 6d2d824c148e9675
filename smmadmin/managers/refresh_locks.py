"""In-flight refresh registry keyed by (brand, provider)."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional, Tuple


RefreshKey = Tuple[int, str]


class RefreshLockRegistry:
    """Tracks the token refresh currently running for each (brand, provider).

    The first caller for a key becomes the owner and holds a future that
    completes when its refresh finishes. Later callers for the same key only
    wait on that future. Keys are independent of each other.

    Check-and-register happens without an await in between, so it is atomic
    with respect to other tasks on the same event loop.
    """

    def __init__(self):
        self._in_flight: Dict[RefreshKey, asyncio.Future] = {}

    def __contains__(self, key: RefreshKey) -> bool:
        return key in self._in_flight

    def __len__(self) -> int:
        return len(self._in_flight)

    def current(self, key: RefreshKey) -> Optional[asyncio.Future]:
        return self._in_flight.get(key)

    async def wait(self, key: RefreshKey) -> bool:
        """Wait for the in-flight refresh for ``key`` to finish.

        Returns:
            True if there was a refresh to wait for
        """
        future = self._in_flight.get(key)
        if future is None:
            return False
        # Shielded so a cancelled waiter never cancels the owner's future
        await asyncio.shield(future)
        return True

    @asynccontextmanager
    async def hold(self, key: RefreshKey) -> AsyncIterator[None]:
        """Register the caller as the owner of the refresh for ``key``.

        The entry is removed and waiters are released on every exit path.

        Raises:
            RuntimeError: If a refresh for ``key`` is already registered
        """
        if key in self._in_flight:
            raise RuntimeError(f"Refresh already in flight for {key}")

        future = asyncio.get_running_loop().create_future()
        self._in_flight[key] = future
        logging.debug(f"🔒 Refresh lock acquired for brand {key[0]} ({key[1]})")
        try:
            yield
        finally:
            if self._in_flight.get(key) is future:
                del self._in_flight[key]
            if not future.done():
                future.set_result(None)
            logging.debug(f"🔓 Refresh lock released for brand {key[0]} ({key[1]})")
