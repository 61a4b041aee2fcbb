# infrastructure/downloader.py
import asyncio
import time
from typing import Optional

import aiohttp

from photoforge.config.logger import get_logger
from photoforge.config.settings import settings
from photoforge.domain.errors import FetchError, TransportError, fetch_error_for_status

logger = get_logger(__name__, tag="DOWNLOADER", level=settings.DOWNLOADER_LOG_LEVEL)


class Downloader:
    """Upstream HTTP gateway with a fixed number of in-flight downloads.

    Callers beyond `max_concurrent` wait on a semaphore, which wakes them in
    FIFO order as slots free up. A slot is held only for the duration of one
    request and is given back on every exit path, cancellation included.
    """

    def __init__(self, max_concurrent: Optional[int] = None, timeout: Optional[float] = None,
                 session: Optional[aiohttp.ClientSession] = None):
        if max_concurrent is None:
            max_concurrent = settings.DOWNLOADER_CONCURRENT
        self.max_concurrent = max_concurrent
        if self.max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")
        self.timeout = aiohttp.ClientTimeout(total=timeout or settings.DOWNLOADER_TIMEOUT)
        self._slots = asyncio.Semaphore(self.max_concurrent)
        self._session = session
        self._owns_session = session is None
        self.in_flight = 0
        self.peak_in_flight = 0

    async def __aenter__(self) -> "Downloader":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def download(self, uri: str, tag: str = "misc") -> bytes:
        start = time.perf_counter()
        async with self._slots:
            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
            try:
                return await self._download(uri, tag, wait=time.perf_counter() - start)
            finally:
                self.in_flight -= 1

    async def _download(self, uri: str, tag: str, wait: float) -> bytes:
        dl_start = time.perf_counter()
        code = 0
        try:
            session = self._get_session()
            async with session.get(uri, timeout=self.timeout) as response:
                code = response.status
                body = await response.read()
            if code >= 300:
                raise fetch_error_for_status(code, body, uri)
        except FetchError as e:
            logger.warning(f"download failed tag={tag} target={uri} wait={wait*1000:.1f}ms "
                           f"dur={(time.perf_counter() - dl_start)*1000:.1f}ms code={code}: {e}")
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"download failed tag={tag} target={uri} wait={wait*1000:.1f}ms "
                           f"dur={(time.perf_counter() - dl_start)*1000:.1f}ms: {type(e).__name__}: {e}")
            raise TransportError(f"{type(e).__name__}: {e}", uri=uri) from e

        logger.info(f"downloaded tag={tag} target={uri} wait={wait*1000:.1f}ms "
                    f"dur={(time.perf_counter() - dl_start)*1000:.1f}ms code={code} size={len(body)}")
        return body
