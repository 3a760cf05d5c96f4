"""Domain exceptions raised by money, coin and configuration flows."""

from __future__ import annotations

from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any


def compose_error_message(*, cause: str, action: str) -> str:
    """Build a user-facing error message with cause and corrective action."""

    return f"Cause: {cause} Action: {action}"


@dataclass(slots=True)
class DomainError(Exception):
    """Base exception for predictable domain failures."""

    code: str
    message: str
    status_code: int
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


class InvalidRequestError(DomainError):
    """Raised when caller input violates business rules."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="INVALID_REQUEST",
            message=message
            or compose_error_message(
                cause="Request data violates business rules.",
                action="Adjust the input fields and try again.",
            ),
            status_code=HTTPStatus.BAD_REQUEST,
            details=details or {},
        )


class InvalidCurrencyCodeError(DomainError):
    """Raised when a currency code is not exactly three characters."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="INVALID_CURRENCY_CODE",
            message=message
            or compose_error_message(
                cause="Currency code must have exactly three characters.",
                action="Use an ISO 4217 code such as USD or EUR.",
            ),
            status_code=HTTPStatus.BAD_REQUEST,
            details=details or {},
        )


class MissingCurrencyCodeError(DomainError):
    """Raised when an amount cannot be scaled because its currency is unknown."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="MISSING_CURRENCY_CODE",
            message=message
            or compose_error_message(
                cause="Amount was given without a currency code.",
                action="Provide currency_code together with the amount.",
            ),
            status_code=HTTPStatus.BAD_REQUEST,
            details=details or {},
        )


class InvalidAmountTypeError(DomainError):
    """Raised when an amount has an unsupported shape."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="INVALID_AMOUNT_TYPE",
            message=message
            or compose_error_message(
                cause="Amount type is not supported.",
                action=(
                    "Send a MonetaryValue, integer minor units or a finite "
                    "decimal amount."
                ),
            ),
            status_code=HTTPStatus.BAD_REQUEST,
            details=details or {},
        )


class ExchangeRateUnavailableError(DomainError):
    """Raised when no rate is registered for a currency pair."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="EXCHANGE_RATE_UNAVAILABLE",
            message=message
            or compose_error_message(
                cause="No exchange rate is registered for the currency pair.",
                action="Add the rate to the exchange rate table and retry.",
            ),
            status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
            details=details or {},
        )


class DuplicateLabelError(DomainError):
    """Raised when a second coin would be stored for the same owner and label."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="DUPLICATE_LABEL",
            message=message
            or compose_error_message(
                cause="A coin with this label already exists for the owner.",
                action="Update the existing coin instead of creating a new one.",
            ),
            status_code=HTTPStatus.CONFLICT,
            details=details or {},
        )


class OwnerNotPersistedError(DomainError):
    """Raised when a coin is attached to an owner without durable identity."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="OWNER_NOT_PERSISTED",
            message=message
            or compose_error_message(
                cause="Owner has no persisted identity yet.",
                action="Save the owner before setting monetary attributes.",
            ),
            status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
            details=details or {},
        )


class InvalidLabelError(DomainError):
    """Raised when a coin label is not a short snake_case identifier."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="INVALID_LABEL",
            message=message
            or compose_error_message(
                cause="Label must use lowercase letters, digits or underscores.",
                action="Use a label such as price or tax with at most 64 chars.",
            ),
            status_code=HTTPStatus.BAD_REQUEST,
            details=details or {},
        )


class DeleteRestrictedError(DomainError):
    """Raised when an owner cannot be removed while restricted coins exist."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="DELETE_RESTRICTED",
            message=message
            or compose_error_message(
                cause="Owner still has coins that block its removal.",
                action="Remove the restricted coins before deleting the owner.",
            ),
            status_code=HTTPStatus.CONFLICT,
            details=details or {},
        )


class InvalidConfigurationError(DomainError):
    """Raised when currency or exchange rate configuration cannot be loaded."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="INVALID_CONFIGURATION",
            message=message
            or compose_error_message(
                cause="Money configuration is malformed.",
                action="Fix the configuration file and reload it.",
            ),
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            details=details or {},
        )
