"""
Custom exceptions for TapPay payment and e-invoice integration.

Usage:
    from tappay.exceptions import ApiError, PaymentError

    try:
        result = await client.pay_by_prime(...)
    except PaymentError as e:
        logger.error(f"Charge failed: {e.status} - {e.msg}")

Transport failures (DNS, connection refused, socket reset) are not wrapped:
the underlying ``requests.exceptions.RequestException`` reaches the caller as is.
"""


class TapPayError(Exception):
    """
    Base exception for TapPay-related errors.

    Attributes:
        message: Human-readable error description
        status: TapPay response status (if available)
        response: Parsed API response dict (if available)
    """

    def __init__(
        self,
        message: str = "TapPay error occurred",
        status: int | None = None,
        response: dict | None = None,
    ):
        self.message = message
        self.status = status
        self.response = response or {}
        super().__init__(self.message)

    def __str__(self):
        if self.status is not None:
            return f"[{self.status}] {self.message}"
        return self.message


class ConfigurationError(TapPayError):
    """
    Raised when a client is not properly configured.

    This occurs at construction time when:
    - Neither merchant_id nor merchant_group_id is set
    - Both merchant_id and merchant_group_id are set
    """

    pass


class ResponseParseError(TapPayError):
    """Raised when the response body is not a JSON object."""

    def __init__(self, message: str = "Failed to parse response"):
        super().__init__(message)


class ApiError(TapPayError):
    """
    Raised when TapPay answers with a non-zero status.

    ``msg`` mirrors the service's field name and is the same value as ``message``.
    """

    def __init__(self, status: int | None, msg: str, response: dict | None = None):
        super().__init__(message=msg, status=status, response=response)

    @property
    def msg(self) -> str:
        return self.message


class PaymentError(ApiError):
    """
    Raised when a charge (pay by prime / pay by card token) fails.

    This can occur when:
    - The prime has expired or was already used
    - The card was declined by the bank
    - The merchant is not allowed to use the requested feature
    """

    pass


class RefundError(ApiError):
    """
    Raised when a refund fails.

    This can occur when:
    - The transaction was already fully refunded
    - The refund amount exceeds the remaining amount
    """

    pass


class RecordQueryError(ApiError):
    """Raised when the transaction record query fails."""

    pass


class InvoiceError(ApiError):
    """
    Raised when an e-invoice operation fails.

    Covers issue, void, void-with-reissue, allowance and both queries.
    """

    pass
