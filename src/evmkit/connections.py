"""Connection helpers for the JSON-RPC ledger."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

import requests
from web3 import HTTPProvider, Web3

from .config import RPCOptions
from .exceptions import NetworkError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors raised by the HTTP layer rather than by the node itself
TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (
    requests.RequestException,
    ConnectionError,
    TimeoutError,
)


def is_transport_error(exc: BaseException) -> bool:
    return isinstance(exc, TRANSPORT_ERRORS)


class LedgerConnection:
    """Own the Web3 handle and HTTP session used by one account."""

    def __init__(self, options: RPCOptions, *, web3: Web3 | None = None):
        self.options = options
        self._session: requests.Session | None = None
        self._provider: HTTPProvider | None = None
        self._web3: Web3 | None = web3
        self._connected = web3 is not None

    @classmethod
    def from_web3(cls, web3: Any, endpoint: str = "injected") -> LedgerConnection:
        """Wrap an existing (possibly fake) Web3 instance."""
        return cls(RPCOptions(url=endpoint), web3=web3)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def connect(self, *, verify: bool = False) -> None:
        """Initialise the HTTP session and provider.

        HTTP providers connect lazily, so by default no request is made here.
        With ``verify=True`` the endpoint is probed and an unreachable node
        raises :class:`NetworkError`.
        """

        if self._web3 is None:
            session = requests.Session()
            session.headers.update(dict(self.options.headers))
            provider = HTTPProvider(
                self.options.url,
                request_kwargs={"timeout": self.options.request_timeout},
                session=session,
            )
            self._session = session
            self._provider = provider
            self._web3 = Web3(provider)

        if verify and not self._web3.is_connected():
            raise NetworkError("Unable to connect to RPC endpoint", endpoint=self.endpoint)

        self._connected = True
        logger.info("Connected to RPC at %s", self.endpoint)

    def disconnect(self) -> None:
        if self._session is not None:
            self._session.close()
        self._session = None
        self._provider = None
        self._web3 = None
        self._connected = False
        logger.debug("Disconnected from %s", self.endpoint)

    def is_connected(self) -> bool:
        return self._connected and self._web3 is not None

    def ensure_connected(self) -> None:
        if not self.is_connected():
            raise NetworkError("Ledger connection is closed", endpoint=self.endpoint)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def endpoint(self) -> str:
        return self.options.url

    @property
    def web3(self) -> Web3:
        if self._web3 is None:
            raise NetworkError(
                "RPC provider not connected; call connect() first",
                endpoint=self.endpoint,
            )
        return self._web3

    @property
    def eth(self) -> Any:
        return self.web3.eth

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def request(self, operation: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Invoke ``func`` and translate transport failures into ``NetworkError``.

        Errors reported by the node itself are re-raised unchanged so callers
        can classify them.
        """

        self.ensure_connected()
        try:
            return func(*args, **kwargs)
        except TRANSPORT_ERRORS as exc:
            raise NetworkError(
                f"RPC request failed during {operation}",
                endpoint=self.endpoint,
                details={"operation": operation, "error": str(exc)},
            ) from exc
