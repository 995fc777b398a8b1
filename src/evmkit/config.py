"""Configuration containers for evmkit."""

from __future__ import annotations

import logging
import os
import random
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace

from dotenv import load_dotenv

from .constants import DEFAULT_RPC_ENDPOINTS, get_chain_id
from .exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_RPC_URL = "http://127.0.0.1:8545"
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_RECEIPT_TIMEOUT = 30.0
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_CONFIRMATION_TIMEOUT = 300.0
DEFAULT_CONFIRMATION_POLL_INTERVAL = 2.0
DEFAULT_MAX_RETRIES = 3


@dataclass(frozen=True)
class RPCOptions:
    """HTTP transport options for a JSON-RPC endpoint."""

    url: str = DEFAULT_RPC_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ClientConfig:
    """Aggregated configuration used to construct an :class:`~evmkit.account.Account`."""

    rpc: RPCOptions = RPCOptions()
    chain_id: int | None = None
    receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT
    confirmation_poll_interval: float = DEFAULT_CONFIRMATION_POLL_INTERVAL
    max_retries: int = DEFAULT_MAX_RETRIES
    nonce_sequencer: bool = False

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> ClientConfig:
        """Build a config from ``EVM_*`` environment variables.

        ``EVM_RPC_URL``, ``EVM_RPC_TIMEOUT``, ``EVM_RECEIPT_TIMEOUT``,
        ``EVM_POLL_INTERVAL`` and ``EVM_CHAIN_ID`` are read after loading a
        ``.env`` file (unless ``dotenv`` is False). Missing values fall back to
        the module defaults.
        """

        if dotenv:
            load_dotenv()

        chain_id_raw = os.getenv("EVM_CHAIN_ID")
        return cls(
            rpc=RPCOptions(
                url=os.getenv("EVM_RPC_URL", DEFAULT_RPC_URL),
                request_timeout=_float_env("EVM_RPC_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
            ),
            chain_id=_parse_int(chain_id_raw, "EVM_CHAIN_ID") if chain_id_raw else None,
            receipt_timeout=_float_env("EVM_RECEIPT_TIMEOUT", DEFAULT_RECEIPT_TIMEOUT),
            poll_interval=_float_env("EVM_POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
        )

    def with_rpc_url(self, url: str) -> ClientConfig:
        """Return a copy pointing at ``url`` with the other transport options kept."""

        return replace(self, rpc=replace(self.rpc, url=url, headers=dict(self.rpc.headers)))


class ChainRegistry:
    """Known RPC endpoints per chain with random endpoint selection.

    The random source is injectable so selection is reproducible in tests.
    """

    def __init__(
        self,
        endpoints: Mapping[int, Sequence[str]] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        source = DEFAULT_RPC_ENDPOINTS if endpoints is None else endpoints
        self._endpoints = {int(chain_id): tuple(urls) for chain_id, urls in source.items()}
        self._rng = rng or random.Random()

    def endpoints(self, chain_id: int) -> tuple[str, ...]:
        return self._endpoints.get(int(chain_id), ())

    def chains(self) -> list[int]:
        return sorted(self._endpoints)

    def register(self, chain_id: int, *urls: str) -> None:
        if not urls:
            raise ValidationError("At least one endpoint is required", field="urls")
        merged = list(self._endpoints.get(int(chain_id), ()))
        for url in urls:
            if url not in merged:
                merged.append(url)
        self._endpoints[int(chain_id)] = tuple(merged)

    def pick(self, chain_id: int) -> str:
        """Return one endpoint for ``chain_id`` chosen at random."""

        urls = self.endpoints(chain_id)
        if not urls:
            raise ValidationError(
                f"No RPC endpoints registered for chain {chain_id}",
                field="chain_id",
                value=chain_id,
            )
        url = self._rng.choice(urls)
        logger.debug("Selected RPC endpoint %s for chain %s", url, chain_id)
        return url

    def pick_by_name(self, name: str) -> str:
        return self.pick(get_chain_id(name))

    def config_for(self, chain_id: int, base: ClientConfig | None = None) -> ClientConfig:
        """Return ``base`` (or defaults) pointed at a random endpoint of ``chain_id``."""

        config = (base or ClientConfig()).with_rpc_url(self.pick(chain_id))
        if config.chain_id is None:
            config = replace(config, chain_id=int(chain_id))
        return config


def _parse_int(raw: str, name: str) -> int:
    try:
        return int(raw, 0)
    except ValueError as exc:
        raise ValidationError(f"{name} must be an integer", field=name, value=raw) from exc


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValidationError(f"{name} must be a number", field=name, value=raw) from exc
