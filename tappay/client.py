"""
TapPay card payment API client.

This module provides a complete client for TapPay card payments,
including charges by prime or stored card token, refunds, and record queries.

Usage:
    from tappay.client import TapPayClient

    client = TapPayClient(partner_key="partner_xxx", merchant_id="merchant_xxx")

    # Charge with a prime obtained by the frontend SDK
    result = await client.pay_by_prime(
        prime="prime_from_frontend",
        amount=100,
        details="Order #1001",
        cardholder={"phone_number": "+886912345678", "name": "王小明", "email": "a@b.com"},
        remember=True,
    )
    card_secret = result.get("card_secret")

    # Charge a remembered card
    result = await client.pay_by_token(
        card_key=card_secret["card_key"],
        card_token=card_secret["card_token"],
        amount=100,
        details="Order #1002",
        cardholder=cardholder,
    )

    # Refund (full, or partial with amount)
    result = await client.refund(rec_trade_id=result["rec_trade_id"], amount=50)

    # Query transaction records
    result = await client.query_records(order_number="1001")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, ClassVar, Literal, TypedDict

from .base import BaseTapPayClient, get_setting
from .exceptions import (
    ApiError,
    ConfigurationError,
    PaymentError,
    RecordQueryError,
    RefundError,
)
from .utils import mask_card_info

logger: logging.Logger = logging.getLogger(__name__)


Currency = Literal["TWD", "USD", "JPY"]

DEFAULT_CURRENCY: Currency = "TWD"


# ============================================================
# Merchant identity
# ============================================================


@dataclass(frozen=True)
class MerchantId:
    """Charge on behalf of a single merchant."""

    value: str
    wire_key: ClassVar[str] = "merchant_id"


@dataclass(frozen=True)
class MerchantGroupId:
    """Charge on behalf of a merchant group."""

    value: str
    wire_key: ClassVar[str] = "merchant_group_id"


MerchantIdentity = MerchantId | MerchantGroupId


def resolve_identity(
    merchant_id: str | None,
    merchant_group_id: str | None,
) -> MerchantIdentity:
    """
    Turn the two mutually exclusive identity fields into one tagged value.

    None and "" both count as absent.

    Raises:
        ConfigurationError: If neither or both are present
    """
    has_merchant_id = bool(merchant_id)
    has_merchant_group_id = bool(merchant_group_id)

    if not has_merchant_id and not has_merchant_group_id:
        raise ConfigurationError("Either merchant_id or merchant_group_id must be provided")

    if has_merchant_id and has_merchant_group_id:
        raise ConfigurationError("merchant_id and merchant_group_id cannot be used together")

    if has_merchant_id:
        return MerchantId(merchant_id)
    return MerchantGroupId(merchant_group_id)


# ============================================================
# TypedDict definitions for requests and responses
# ============================================================


class Cardholder(TypedDict, total=False):
    """Cardholder information (phone_number, name and email are required by TapPay)."""

    phone_number: str
    name: str
    email: str
    zip_code: str
    address: str
    national_id: str
    member_id: str


class CardholderFilter(TypedDict, total=False):
    phone_number: str
    name: str
    email: str


class TimeRange(TypedDict):
    """Epoch milliseconds."""

    start_time: int
    end_time: int


class AmountRange(TypedDict):
    lower_limit: int
    upper_limit: int


class CardInfo(TypedDict, total=False):
    """Card information from TapPay API."""

    bin_code: str
    last_four: str
    issuer: str
    funding: int
    type: int
    level: str
    country: str
    country_code: str


class CardSecret(TypedDict):
    """Stored card credentials, returned when remember=True."""

    card_key: str
    card_token: str


class BankTransactionTime(TypedDict, total=False):
    start_time_millis: str
    end_time_millis: str


class PayByPrimeResponse(TypedDict, total=False):
    """Response from pay by prime API."""

    status: int
    msg: str
    amount: int
    currency: Currency
    rec_trade_id: str
    bank_transaction_id: str
    order_number: str
    auth_code: str
    card_info: CardInfo
    card_secret: CardSecret
    payment_url: str
    transaction_time_millis: int
    bank_transaction_time: BankTransactionTime
    bank_result_code: str
    bank_result_msg: str
    acquirer: str


class PayByCardTokenResponse(TypedDict, total=False):
    """Response from pay by card token API."""

    status: int
    msg: str
    amount: int
    currency: Currency
    rec_trade_id: str
    bank_transaction_id: str
    order_number: str
    auth_code: str
    card_info: CardInfo
    payment_url: str
    transaction_time_millis: int
    bank_transaction_time: BankTransactionTime
    acquirer: str


class RefundResponse(TypedDict, total=False):
    """Response from refund API."""

    status: int
    msg: str
    rec_trade_id: str
    refund_amount: int
    is_capture: bool


class TradeRecord(TypedDict, total=False):
    rec_trade_id: str
    amount: int
    currency: Currency
    record_status: int
    order_number: str
    bank_transaction_id: str
    transaction_time_millis: int
    bank_transaction_time: BankTransactionTime
    card_info: CardInfo
    cardholder: Cardholder
    bank_result_code: str
    bank_result_msg: str
    auth_code: str
    merchant_id: str
    acquirer: str


class RecordResponse(TypedDict, total=False):
    """Response from transaction record query API."""

    status: int
    msg: str
    number_of_transactions: int
    trade_records: list[TradeRecord]


class TapPayClient(BaseTapPayClient):
    """
    TapPay card payment API client.

    Configuration (in Django settings, overridden by constructor arguments):
        TAPPAY_PARTNER_KEY: Partner key
        TAPPAY_MERCHANT_ID: Merchant ID (mutually exclusive with group ID)
        TAPPAY_MERCHANT_GROUP_ID: Merchant group ID
        TAPPAY_ENV: "sandbox" (default) or "production"
        TAPPAY_TIMEOUT: Transport timeout in seconds (default: none)

    Attributes:
        identity: MerchantId or MerchantGroupId injected into charge payloads
        host: API host resolved from the environment
    """

    HOSTS = ("sandbox.tappaysdk.com", "prod.tappaysdk.com")

    # API Endpoints
    ENDPOINT_PAY_BY_PRIME = "/tpc/payment/pay-by-prime"
    ENDPOINT_PAY_BY_TOKEN = "/tpc/payment/pay-by-token"
    ENDPOINT_REFUND = "/tpc/transaction/refund"
    ENDPOINT_RECORD = "/tpc/transaction/query"

    def __init__(
        self,
        partner_key: str | None = None,
        merchant_id: str | None = None,
        merchant_group_id: str | None = None,
        env: Literal["sandbox", "production"] | None = None,
        timeout: float | None = None,
    ):
        """
        Initialize TapPay payment client.

        Args:
            partner_key: Override partner key (default: from settings)
            merchant_id: Merchant ID
            merchant_group_id: Merchant group ID
            env: "production" for the live host; anything else uses sandbox
            timeout: Transport timeout in seconds

        Raises:
            ConfigurationError: Unless exactly one of merchant_id /
                merchant_group_id is non-empty
        """
        # Identity comes from arguments or from settings, never a mix of both
        if merchant_id is None and merchant_group_id is None:
            merchant_id = get_setting("TAPPAY_MERCHANT_ID")
            merchant_group_id = get_setting("TAPPAY_MERCHANT_GROUP_ID")

        self.identity: MerchantIdentity = resolve_identity(merchant_id, merchant_group_id)

        super().__init__(
            partner_key=(
                partner_key if partner_key is not None else get_setting("TAPPAY_PARTNER_KEY", "")
            ),
            env=env if env is not None else get_setting("TAPPAY_ENV", "sandbox"),
            timeout=timeout if timeout is not None else get_setting("TAPPAY_TIMEOUT"),
        )

    def _add_result_url(
        self,
        payload: dict[str, Any],
        frontend_redirect_url: str | None,
        backend_notify_url: str | None,
    ) -> None:
        # Only sent as a pair
        if frontend_redirect_url and backend_notify_url:
            payload["result_url"] = {
                "frontend_redirect_url": frontend_redirect_url,
                "backend_notify_url": backend_notify_url,
            }

    async def pay_by_prime(
        self,
        prime: str,
        amount: int,
        details: str,
        cardholder: Cardholder,
        currency: Currency | None = None,
        remember: bool | None = None,
        order_number: str | None = None,
        bank_transaction_id: str | None = None,
        three_domain_secure: bool | None = None,
        frontend_redirect_url: str | None = None,
        backend_notify_url: str | None = None,
        instalment: int | None = None,
        delay_capture: int | None = None,
        headers: dict[str, str] | None = None,
    ) -> PayByPrimeResponse:
        """
        Charge a card with a prime obtained by the TapPay frontend SDK.

        Args:
            prime: One-time prime token
            amount: Charge amount
            details: Order description shown on the bank statement
            cardholder: Cardholder information
            currency: Currency code (default: "TWD")
            remember: Ask TapPay to return card_key/card_token for later charges
            order_number: Merchant order number
            bank_transaction_id: Merchant-chosen bank transaction ID
            three_domain_secure: Request 3-D Secure; response carries payment_url
            frontend_redirect_url: 3-D Secure return URL (needs backend_notify_url)
            backend_notify_url: 3-D Secure notification URL (needs frontend_redirect_url)
            instalment: Number of instalments (0 or None = single payment)
            delay_capture: Days to delay capture (0 or None = capture now)
            headers: Extra HTTP headers, e.g. a request ID

        Returns:
            PayByPrimeResponse

        Raises:
            PaymentError: On non-zero TapPay status
        """
        payload: dict[str, Any] = {
            "prime": prime,
            "partner_key": self.partner_key,
            self.identity.wire_key: self.identity.value,
            "details": details,
            "amount": amount,
            "currency": currency or DEFAULT_CURRENCY,
            "cardholder": cardholder,
        }

        if remember is not None:
            payload["remember"] = remember

        if order_number is not None:
            payload["order_number"] = order_number

        if bank_transaction_id is not None:
            payload["bank_transaction_id"] = bank_transaction_id

        if three_domain_secure is not None:
            payload["three_domain_secure"] = three_domain_secure

        self._add_result_url(payload, frontend_redirect_url, backend_notify_url)

        if instalment:
            payload["instalment"] = instalment

        if delay_capture:
            payload["delay_capture_in_days"] = delay_capture

        return await self._charge(
            "pay_by_prime", self.ENDPOINT_PAY_BY_PRIME, payload, headers
        )

    async def pay_by_token(
        self,
        card_key: str,
        card_token: str,
        amount: int,
        details: str,
        cardholder: Cardholder,
        currency: Currency | None = None,
        order_number: str | None = None,
        bank_transaction_id: str | None = None,
        three_domain_secure: bool | None = None,
        frontend_redirect_url: str | None = None,
        backend_notify_url: str | None = None,
        instalment: int | None = None,
        headers: dict[str, str] | None = None,
    ) -> PayByCardTokenResponse:
        """
        Charge a remembered card with its card_key/card_token pair.

        Args:
            card_key: Card key from a previous pay_by_prime with remember=True
            card_token: Card token from the same response
            amount: Charge amount
            details: Order description
            cardholder: Cardholder information
            currency: Currency code (default: "TWD")
            order_number: Merchant order number
            bank_transaction_id: Merchant-chosen bank transaction ID
            three_domain_secure: Request 3-D Secure
            frontend_redirect_url: 3-D Secure return URL (needs backend_notify_url)
            backend_notify_url: 3-D Secure notification URL (needs frontend_redirect_url)
            instalment: Number of instalments (0 or None = single payment)
            headers: Extra HTTP headers

        Returns:
            PayByCardTokenResponse

        Raises:
            PaymentError: On non-zero TapPay status
        """
        payload: dict[str, Any] = {
            "card_key": card_key,
            "card_token": card_token,
            "partner_key": self.partner_key,
            self.identity.wire_key: self.identity.value,
            "amount": amount,
            "currency": currency or DEFAULT_CURRENCY,
            "details": details,
            "cardholder": cardholder,
        }

        if order_number is not None:
            payload["order_number"] = order_number

        if bank_transaction_id is not None:
            payload["bank_transaction_id"] = bank_transaction_id

        if three_domain_secure is not None:
            payload["three_domain_secure"] = three_domain_secure

        self._add_result_url(payload, frontend_redirect_url, backend_notify_url)

        if instalment:
            payload["instalment"] = instalment

        return await self._charge(
            "pay_by_token", self.ENDPOINT_PAY_BY_TOKEN, payload, headers
        )

    async def _charge(
        self,
        method: str,
        endpoint: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None,
    ) -> dict[str, Any]:
        from .signals import payment_failed, payment_succeeded

        try:
            result = await self._request(endpoint, payload, headers)
        except ApiError as e:
            logger.error(
                "Payment failed",
                extra={
                    "method": method,
                    "order_number": payload.get("order_number"),
                    "amount": payload["amount"],
                    "error_status": e.status,
                    "error_message": e.msg,
                },
            )

            self._send_signal(
                payment_failed,
                stage=method,
                status=e.status,
                msg=e.msg,
            )

            raise PaymentError(status=e.status, msg=e.msg, response=e.response) from e

        # Audit log: card key/token and prime are intentionally excluded
        logger.info(
            "Payment charged by TapPay",
            extra={
                "method": method,
                "order_number": payload.get("order_number"),
                "amount": payload["amount"],
                "currency": payload["currency"],
                "rec_trade_id": result.get("rec_trade_id", ""),
                "card": mask_card_info(result.get("card_info")),
                "has_payment_url": bool(result.get("payment_url")),
            },
        )

        self._send_signal(
            payment_succeeded,
            method=method,
            response=result,
        )

        return result

    async def refund(
        self,
        rec_trade_id: str,
        amount: int | None = None,
        headers: dict[str, str] | None = None,
    ) -> RefundResponse:
        """
        Refund a transaction, fully or partially.

        Args:
            rec_trade_id: TapPay transaction ID
            amount: Partial refund amount (None = full refund)
            headers: Extra HTTP headers

        Returns:
            RefundResponse

        Raises:
            RefundError: On non-zero TapPay status
        """
        from .signals import payment_failed, payment_refunded

        payload: dict[str, Any] = {
            "partner_key": self.partner_key,
            "rec_trade_id": rec_trade_id,
        }

        if amount is not None:
            payload["amount"] = amount

        # Audit log: refund initiated (warning level - significant operation)
        logger.warning(
            "Refund initiated",
            extra={"rec_trade_id": rec_trade_id, "refund_amount": amount},
        )

        try:
            result = await self._request(self.ENDPOINT_REFUND, payload, headers)
        except ApiError as e:
            logger.error(
                "Refund failed",
                extra={
                    "rec_trade_id": rec_trade_id,
                    "error_status": e.status,
                    "error_message": e.msg,
                },
            )

            self._send_signal(
                payment_failed,
                stage="refund",
                status=e.status,
                msg=e.msg,
            )

            raise RefundError(status=e.status, msg=e.msg, response=e.response) from e

        logger.info(
            "Refund completed",
            extra={
                "rec_trade_id": rec_trade_id,
                "refund_amount": result.get("refund_amount"),
            },
        )

        self._send_signal(
            payment_refunded,
            rec_trade_id=rec_trade_id,
            response=result,
        )

        return result

    async def query_records(
        self,
        records_per_page: int | None = None,
        page: int | None = None,
        time_range: TimeRange | None = None,
        amount_range: AmountRange | None = None,
        cardholder: CardholderFilter | None = None,
        merchant_id: str | None = None,
        currency: Currency | None = None,
        order_number: str | None = None,
        rec_trade_id: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> RecordResponse:
        """
        Query transaction records.

        Filters are sent only when at least one is given.

        Args:
            records_per_page: Page size
            page: Page index
            time_range: {"start_time", "end_time"} in epoch milliseconds
            amount_range: {"lower_limit", "upper_limit"}
            cardholder: Any of phone_number, name, email
            merchant_id: Restrict to one merchant
            currency: Restrict to one currency
            order_number: Merchant order number
            rec_trade_id: TapPay transaction ID
            headers: Extra HTTP headers

        Returns:
            RecordResponse

        Raises:
            RecordQueryError: On non-zero TapPay status
        """
        payload: dict[str, Any] = {
            "partner_key": self.partner_key,
        }

        filters: dict[str, Any] = {}

        if records_per_page:
            filters["records_per_page"] = records_per_page

        if page:
            filters["page"] = page

        if time_range is not None:
            filters["time"] = {
                "start_time": time_range["start_time"],
                "end_time": time_range["end_time"],
            }

        if amount_range is not None:
            filters["amount"] = {
                "lower_limit": amount_range["lower_limit"],
                "upper_limit": amount_range["upper_limit"],
            }

        if cardholder is not None:
            cardholder_filter = {
                key: cardholder[key]
                for key in ("phone_number", "name", "email")
                if cardholder.get(key) is not None
            }
            if cardholder_filter:
                filters["cardholder"] = cardholder_filter

        if merchant_id:
            filters["merchant_id"] = merchant_id

        if currency:
            filters["currency"] = currency

        if order_number:
            filters["order_number"] = order_number

        if rec_trade_id:
            filters["rec_trade_id"] = rec_trade_id

        if filters:
            payload["filters"] = filters

        # Debug log: record query (frequent operation, debug level)
        logger.debug(
            "Querying transaction records",
            extra={"filter_keys": sorted(filters)},
        )

        try:
            result = await self._request(self.ENDPOINT_RECORD, payload, headers)
        except ApiError as e:
            logger.warning(
                "Transaction record query failed",
                extra={"error_status": e.status, "error_message": e.msg},
            )
            raise RecordQueryError(status=e.status, msg=e.msg, response=e.response) from e

        logger.debug(
            "Transaction records received",
            extra={"number_of_transactions": result.get("number_of_transactions")},
        )

        return result
