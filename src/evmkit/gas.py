"""Gas limit and pricing resolution."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .constants import MAX_GAS_LIMIT
from .exceptions import SimulationRevertError, ValidationError
from .types import GasParams, GasStrategy

if TYPE_CHECKING:
    from .account import Account

logger = logging.getLogger(__name__)

# Multipliers expressed as percentages so all arithmetic stays on integer wei
_STRATEGY_PERCENT = {
    GasStrategy.FAST: 150,
    GasStrategy.SLOW: 80,
    GasStrategy.STANDARD: 100,
}
AUTO_BUMP_PERCENT = 110
DYNAMIC_BUMP_PERCENT = 110
FEE_CAP_MULTIPLIER = 2
ESCALATION_SUGGESTED_PERCENT = 120
ESCALATION_PREVIOUS_PERCENT = 110


def apply_strategy(suggested: int, strategy: GasStrategy | str) -> int:
    """Scale a suggested gas price by a named preset."""

    strategy = GasStrategy(strategy)
    if strategy is GasStrategy.AUTO:
        return max(suggested, suggested * AUTO_BUMP_PERCENT // 100)
    return suggested * _STRATEGY_PERCENT[strategy] // 100


def calculate_gas_cost(gas_limit: int, gas_price: int | None) -> int:
    if gas_price is None:
        return 0
    return gas_limit * gas_price


def total_cost(amount: int | None, gas_limit: int, gas_price: int | None) -> int:
    """Transfer amount plus the worst-case gas fee."""
    return (amount or 0) + calculate_gas_cost(gas_limit, gas_price)


def validate_gas_limit(gas_limit: int) -> int:
    if gas_limit <= 0:
        raise ValidationError("Gas limit must be positive", field="gas_limit", value=gas_limit)
    if gas_limit > MAX_GAS_LIMIT:
        raise ValidationError(
            f"Gas limit exceeds block gas limit of {MAX_GAS_LIMIT}",
            field="gas_limit",
            value=gas_limit,
        )
    return gas_limit


def validate_gas_price(gas_price: int) -> int:
    if gas_price <= 0:
        raise ValidationError("Gas price must be positive", field="gas_price", value=gas_price)
    return gas_price


def validate_gas_params(gas_limit: int, gas_price: int | None) -> None:
    validate_gas_limit(gas_limit)
    if gas_price is not None:
        validate_gas_price(gas_price)


class GasPlanner:
    """Fill in gas limit and pricing gaps for one account.

    ``None`` means "resolve automatically" for every parameter; a gas limit of
    ``0`` is treated the same way since it could never execute. Explicit
    prices are used verbatim.
    """

    def __init__(self, account: Account):
        self._account = account

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------
    def resolve_gas_limit(
        self,
        gas_limit: int | None,
        to: str | None = None,
        value: int = 0,
        data: bytes = b"",
    ) -> int:
        if gas_limit:
            return gas_limit

        try:
            estimated = self._account.estimate_gas(self._account.address, to, value, data)
        except SimulationRevertError as exc:
            raise SimulationRevertError(
                "Gas estimation failed while resolving gas limit",
                operation="estimate_gas",
                address=to,
                details={**exc.details, "value": value, "cause": exc.message},
            ) from exc

        logger.debug("Estimated gas limit %d for to=%s", estimated, to)
        return estimated

    def resolve_gas_price(
        self,
        gas_price: int | None,
        strategy: GasStrategy | str | None = None,
    ) -> int:
        if gas_price is not None:
            return gas_price

        suggested = self._account.suggest_gas_price()
        if strategy is None:
            return suggested
        price = apply_strategy(suggested, strategy)
        logger.debug("Gas price %d from strategy %s (suggested %d)", price, strategy, suggested)
        return price

    def gas_price_for(self, strategy: GasStrategy | str) -> int:
        return self.resolve_gas_price(None, strategy)

    def resolve_dynamic_fees(
        self,
        max_fee_per_gas: int | None = None,
        max_priority_fee_per_gas: int | None = None,
    ) -> tuple[int, int]:
        """Return ``(max_priority_fee_per_gas, max_fee_per_gas)`` with the cap never below the tip."""

        tip = max_priority_fee_per_gas
        if tip is None:
            tip = self._account.suggest_gas_tip_cap()

        fee_cap = max_fee_per_gas
        if fee_cap is None:
            fee_cap = self._account.suggest_gas_price() * FEE_CAP_MULTIPLIER

        if fee_cap < tip:
            logger.debug("Raising fee cap %d to tip %d", fee_cap, tip)
            fee_cap = tip
        return tip, fee_cap

    def process_gas_params(
        self,
        gas_limit: int | None = None,
        gas_price: int | None = None,
        to: str | None = None,
        value: int = 0,
        data: bytes = b"",
        strategy: GasStrategy | str | None = None,
    ) -> GasParams:
        """Resolve a legacy-model :class:`GasParams`.

        Raises:
            SimulationRevertError: when the gas limit is auto and estimation fails
            NetworkError: when the node cannot be reached
        """

        limit = self.resolve_gas_limit(gas_limit, to, value, data)
        price = self.resolve_gas_price(gas_price, strategy)
        return GasParams(gas_limit=limit, gas_price=price)

    # ------------------------------------------------------------------
    # Suggestions
    # ------------------------------------------------------------------
    def optimal_gas_price(self) -> int:
        base = self._account.suggest_gas_price()
        return max(base, base * DYNAMIC_BUMP_PERCENT // 100)

    def escalate(self, params: GasParams) -> GasParams:
        """Return pricing high enough to replace a transaction sent with ``params``."""

        if not params.is_dynamic:
            suggested = self._account.suggest_gas_price()
            old = params.gas_price or 0
            price = max(
                suggested * ESCALATION_SUGGESTED_PERCENT // 100,
                old * ESCALATION_PREVIOUS_PERCENT // 100,
                old + 1,
            )
            logger.info("Escalating gas price %d -> %d", old, price)
            return GasParams(gas_limit=params.gas_limit, gas_price=price)

        old_tip = params.max_priority_fee_per_gas or 0
        old_cap = params.max_fee_per_gas or 0
        suggested_tip = self._account.suggest_gas_tip_cap()
        suggested_price = self._account.suggest_gas_price()
        tip = max(
            suggested_tip * ESCALATION_SUGGESTED_PERCENT // 100,
            old_tip * ESCALATION_PREVIOUS_PERCENT // 100,
            old_tip + 1,
        )
        fee_cap = max(
            suggested_price * FEE_CAP_MULTIPLIER,
            old_cap * ESCALATION_PREVIOUS_PERCENT // 100,
            old_cap + 1,
            tip,
        )
        logger.info("Escalating fees tip %d -> %d, cap %d -> %d", old_tip, tip, old_cap, fee_cap)
        return GasParams(
            gas_limit=params.gas_limit,
            max_priority_fee_per_gas=tip,
            max_fee_per_gas=fee_cap,
        )

    calculate_gas_cost = staticmethod(calculate_gas_cost)
    total_cost = staticmethod(total_cost)
    validate_gas_limit = staticmethod(validate_gas_limit)
    validate_gas_price = staticmethod(validate_gas_price)
    validate_gas_params = staticmethod(validate_gas_params)
