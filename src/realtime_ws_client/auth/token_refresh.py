"""Single-flight credential refresh and the default HTTP refresher."""

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any, Optional

import httpx

from realtime_ws_client.constants import TOKEN_REFRESH_PATH
from realtime_ws_client.exceptions import TokenRefreshException
from realtime_ws_client.telemetry.logger import get_logger
from realtime_ws_client.telemetry.metrics import ConnectionMetrics

logger = get_logger(__name__)

RefreshFunc = Callable[[], Awaitable[str]]
TokenListener = Callable[[str], Any]
FailureListener = Callable[[BaseException], Any]


async def notify_listener(listener: Optional[Callable[..., Any]], *args: Any) -> None:
    if listener is None:
        return
    try:
        result = listener(*args)
        if asyncio.iscoroutine(result):
            await result
    except Exception:
        logger.exception("token_refresh_listener_failed")


class CredentialRefreshCoordinator:
    """Collapses concurrent refresh requests into one upstream call.

    The first caller performs the refresh; callers arriving while it is in
    flight wait for its outcome and receive the same token or the same
    exception.
    """

    def __init__(
        self,
        refresh_func: RefreshFunc,
        on_refreshed: Optional[TokenListener] = None,
        on_refresh_failed: Optional[FailureListener] = None,
        metrics: Optional[ConnectionMetrics] = None,
    ):
        """Initialize coordinator.

        Args:
            refresh_func: Upstream call returning a fresh token
            on_refreshed: Called with the new token before waiters resume
            on_refresh_failed: Called once per failed upstream call; the
                host hooks its logout flow here
            metrics: Optional metrics sink
        """
        self._refresh_func = refresh_func
        self._on_refreshed = on_refreshed
        self._on_refresh_failed = on_refresh_failed
        self._metrics = metrics
        self._waiters: deque[asyncio.Future] = deque()
        self._refreshing = False

    @property
    def refreshing(self) -> bool:
        return self._refreshing

    @property
    def pending_waiters(self) -> int:
        return len(self._waiters)

    async def refresh(self) -> str:
        """Return a fresh token, sharing an in-flight refresh if there is one."""
        if self._refreshing:
            waiter = asyncio.get_running_loop().create_future()
            self._waiters.append(waiter)
            return await waiter

        self._refreshing = True
        logger.info("token_refresh_started")
        try:
            token = await self._refresh_func()
        except asyncio.CancelledError:
            self._reject_waiters(TokenRefreshException("Token refresh cancelled"))
            self._refreshing = False
            raise
        except Exception as e:
            logger.warning("token_refresh_failed", error=str(e), waiters=len(self._waiters))
            self._record("failure")
            self._reject_waiters(e)
            self._refreshing = False
            await notify_listener(self._on_refresh_failed, e)
            raise

        logger.info("token_refresh_succeeded", waiters=len(self._waiters))
        self._record("success")
        try:
            await notify_listener(self._on_refreshed, token)
        finally:
            # The token is settled even if the observer is cancelled
            self._resolve_waiters(token)
            self._refreshing = False
        return token

    def _resolve_waiters(self, token: str) -> None:
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(token)

    def _reject_waiters(self, error: BaseException) -> None:
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_exception(error)

    def _record(self, outcome: str) -> None:
        if self._metrics:
            self._metrics.token_refreshes.labels(outcome=outcome).inc()


class HttpTokenRefresher:
    """Exchanges the session cookie for a new access token.

    Usable directly as the ``refresh_func`` of the client.
    """

    def __init__(
        self,
        api_base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        cookies: Optional[dict[str, str]] = None,
        timeout: float = 10.0,
    ):
        self.api_base_url = api_base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout, cookies=cookies)
        self._owns_client = client is None
        self.roles: Optional[list[str]] = None

    async def __call__(self) -> str:
        try:
            response = await self._client.post(f"{self.api_base_url}{TOKEN_REFRESH_PATH}", json={})
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TokenRefreshException(
                f"Token refresh rejected: {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise TokenRefreshException(f"Token refresh request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise TokenRefreshException("Token refresh returned a non-JSON body") from e

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise TokenRefreshException("Token refresh response carried no access_token")

        self.roles = data.get("roles", self.roles)
        return token

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()
