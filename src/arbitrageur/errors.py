"""Exception hierarchy for the arbitrageur."""

from __future__ import annotations

from decimal import Decimal


class ArbitrageurError(Exception):
    """Base class for all arbitrageur errors."""


class ConfigError(ArbitrageurError):
    """Invalid or incomplete static configuration / market metadata."""


class MissingSecretsError(ConfigError):
    """A required runtime secret is not set. Fatal at startup."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing required env variables: {', '.join(missing)}")


class OpenSizeTooSmallError(ArbitrageurError):
    """Computed trade size rounds below the FTX size increment."""

    def __init__(
        self,
        market: str,
        open_order_amount: Decimal,
        base_size: Decimal,
        precision: int,
        size_increment: Decimal,
    ):
        self.market = market
        self.open_order_amount = open_order_amount
        self.base_size = base_size
        self.precision = precision
        self.size_increment = size_increment
        super().__init__(
            f"OpenSizeSmallerThanFTXSizeIncrementError: market={market} "
            f"openOrderAmount={open_order_amount} baseSize={base_size} "
            f"precision={precision} ftxSizeIncrement={size_increment}"
        )


class FtxApiError(ArbitrageurError):
    """FTX REST API rejected a request or returned an unusable payload."""

    def __init__(self, message: str, status: int | None = None):
        self.status = status
        self.message = message
        super().__init__(f"FTX API error (status={status}): {message}")
