"""
TapPay e-invoice API client.

Issues, voids, reissues and credits (allowances) Taiwanese electronic invoices,
and queries invoices and allowances.

Usage:
    from tappay.einvoice import EInvoiceClient

    client = EInvoiceClient(partner_key="partner_xxx")

    result = await client.issue_invoice(
        order_number="TP_TEST_01",
        order_date="20250212",
        buyer_email="buyer@example.com",
        total_amount=300,
        details=[{
            "sequence_id": "001",
            "sub_amount": 300,
            "unit_price": 300,
            "quantity": 1,
            "description": "example",
            "tax_type": 1,
        }],
        tax_amount=0,
        notify_url="https://example.com/notify",
    )
    rec_invoice_id = result["rec_invoice_id"]
"""

from __future__ import annotations

import logging
from typing import Any, Literal, TypedDict

from .base import BaseTapPayClient, get_setting
from .exceptions import ApiError, InvoiceError

logger: logging.Logger = logging.getLogger(__name__)


# AUTO: TapPay mails the buyer, MANU: merchant sends it
NotifyEmail = Literal["AUTO", "MANU"]

# 1: general tax, 2: special tax
InvoiceType = Literal[1, 2]

# 0: member carrier, 1: mobile barcode, 2: citizen digital certificate
CarrierType = Literal[0, 1, 2]

# 1: taxable, 2: zero-rated, 3: tax-free
TaxType = Literal[1, 2, 3]

PaymentType = Literal["CREDIT_CARD", "E_WALLET"]

EInvoiceCurrency = Literal["TWD"]

CustomsClearanceMarkEnum = Literal[1, 2]

DEFAULT_CURRENCY: EInvoiceCurrency = "TWD"


# ============================================================
# TypedDict definitions for requests and responses
# ============================================================


class InvoiceDetail(TypedDict):
    """Invoice line item."""

    sequence_id: str
    sub_amount: int
    unit_price: int
    quantity: int
    description: str
    tax_type: TaxType


class Carrier(TypedDict, total=False):
    type: CarrierType
    number: str


class AllowanceDetail(TypedDict, total=False):
    """Allowance line item (description is optional)."""

    sequence_id: str
    sub_amount: int
    unit_price: int
    quantity: int
    description: str
    tax_type: TaxType
    tax_amount: int


class IssueInvoiceResponse(TypedDict, total=False):
    status: int
    msg: str
    invoice_result_error_code: str
    invoice_result_msg: str
    rec_invoice_id: str
    order_number: str
    invoice_issue_order_number: str
    invoice_number: str
    invoice_date: str
    invoice_time: str


class VoidInvoiceResponse(TypedDict, total=False):
    status: int
    msg: str
    invoice_result_error_code: str
    invoice_result_msg: str
    invoice_void_order_number: str
    invoice_number: str
    void_date: str
    void_time: str


class VoidWithReissueResponse(TypedDict, total=False):
    status: int
    msg: str
    invoice_result_error_code: str
    invoice_result_msg: str
    invoice_reissue_order_number: str
    invoice_number: str
    reissue_date: str
    reissue_time: str


class AllowanceResponse(TypedDict, total=False):
    status: int
    msg: str
    invoice_result_error_code: str
    invoice_result_msg: str
    invoice_allowance_order_number: str
    allowance_number: str
    invoice_number: str
    remain_amount: int
    allowance_date: str
    allowance_time: str


class SellerInfo(TypedDict):
    identifier: str


class BuyerInfo(TypedDict, total=False):
    identifier: str
    email: str
    notify_type: NotifyEmail


class QueryInvoiceResponse(TypedDict, total=False):
    status: int
    msg: str
    invoice_result_error_code: str
    invoice_result_msg: str
    rec_invoice_id: str
    invoice_status: str
    invoice_number: str
    seller_info: SellerInfo
    buyer_info: BuyerInfo
    currency: EInvoiceCurrency
    tax_amount: int
    sales_amount: int
    zero_tax_sales_amount: int
    free_tax_sales_amount: int
    total_amount: int
    payment_type: str
    carrier: Carrier
    npoban: str
    remark: str


class QueryAllowanceResponse(TypedDict, total=False):
    status: int
    msg: str
    invoice_result_error_code: str
    invoice_result_msg: str
    rec_invoice_id: str
    allowance_number: str
    invoice_number: str
    allowance_amount: int
    allowance_sale_amount: int
    allowance_tax_amount: int
    allowance_date: str
    allowance_time: str
    details: list[AllowanceDetail]


class EInvoiceClient(BaseTapPayClient):
    """
    TapPay e-invoice API client.

    The partner key is the only identity; there is no merchant selector.

    Configuration (in Django settings, overridden by constructor arguments):
        TAPPAY_EINVOICE_PARTNER_KEY: Partner key (falls back to TAPPAY_PARTNER_KEY)
        TAPPAY_ENV: "sandbox" (default) or "production"
        TAPPAY_TIMEOUT: Transport timeout in seconds (default: none)
    """

    HOSTS = ("sandbox-invoice.tappaysdk.com", "invoice.tappaysdk.com")

    # API Endpoints
    ENDPOINT_ISSUE = "/einvoice/issue"
    ENDPOINT_VOID = "/einvoice/void"
    ENDPOINT_VOID_WITH_REISSUE = "/einvoice/void-with-reissue"
    ENDPOINT_ALLOWANCE = "/einvoice/allowance"
    ENDPOINT_QUERY = "/einvoice/query"
    ENDPOINT_QUERY_ALLOWANCE = "/einvoice/query-allowance"

    def __init__(
        self,
        partner_key: str | None = None,
        env: Literal["sandbox", "production"] | None = None,
        timeout: float | None = None,
    ):
        if partner_key is None:
            partner_key = get_setting(
                "TAPPAY_EINVOICE_PARTNER_KEY", get_setting("TAPPAY_PARTNER_KEY", "")
            )

        super().__init__(
            partner_key=partner_key,
            env=env if env is not None else get_setting("TAPPAY_ENV", "sandbox"),
            timeout=timeout if timeout is not None else get_setting("TAPPAY_TIMEOUT"),
        )

    async def _invoice_request(
        self,
        stage: str,
        endpoint: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None,
        *,
        notify_failure: bool,
    ) -> dict[str, Any]:
        """Send an e-invoice request, converting API errors to InvoiceError."""
        from .signals import invoice_failed

        try:
            return await self._request(endpoint, payload, headers)
        except ApiError as e:
            logger.error(
                "E-invoice operation failed",
                extra={
                    "stage": stage,
                    "rec_invoice_id": payload.get("rec_invoice_id"),
                    "order_number": payload.get("order_number"),
                    "error_status": e.status,
                    "error_message": e.msg,
                },
            )

            if notify_failure:
                self._send_signal(
                    invoice_failed,
                    stage=stage,
                    status=e.status,
                    msg=e.msg,
                )

            raise InvoiceError(status=e.status, msg=e.msg, response=e.response) from e

    async def issue_invoice(
        self,
        order_number: str,
        order_date: str,
        buyer_email: str,
        total_amount: int,
        details: list[InvoiceDetail],
        tax_amount: int,
        notify_url: str,
        currency: EInvoiceCurrency | None = None,
        seller_name: str | None = None,
        seller_identifier: str | None = None,
        buyer_identifier: str | None = None,
        buyer_name: str | None = None,
        buyer_cell_phone: str | None = None,
        buyer_address: str | None = None,
        issue_notify_email: NotifyEmail | None = None,
        invoice_type: InvoiceType | None = None,
        tax_rate: float | None = None,
        sales_amount: int | None = None,
        zero_tax_sales_amount: int | None = None,
        customs_clearance_mark_enum: CustomsClearanceMarkEnum | None = None,
        free_tax_sales_amount: int | None = None,
        payment_type: PaymentType | None = None,
        carrier: Carrier | None = None,
        npoban: str | None = None,
        invoice_number: str | None = None,
        remark: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> IssueInvoiceResponse:
        """
        Issue an e-invoice.

        Args:
            order_number: Merchant order number
            order_date: Order date (YYYYMMDD)
            buyer_email: Buyer email
            total_amount: Invoice total
            details: Line items
            tax_amount: Tax amount
            notify_url: URL TapPay calls with the issue result
            currency: Currency (default: "TWD")
            carrier: Carrier the buyer receives the invoice on
            npoban: Donation code (love code)
            headers: Extra HTTP headers

            Remaining arguments are forwarded under the same wire key when given.

        Returns:
            IssueInvoiceResponse

        Raises:
            InvoiceError: On non-zero TapPay status
        """
        from .signals import invoice_issued

        payload: dict[str, Any] = {
            "partner_key": self.partner_key,
            "order_number": order_number,
            "order_date": order_date,
            "buyer_email": buyer_email,
            "currency": currency or DEFAULT_CURRENCY,
            "total_amount": total_amount,
            "details": details,
            "tax_amount": tax_amount,
            "notify_url": notify_url,
        }

        optional = {
            "seller_name": seller_name,
            "seller_identifier": seller_identifier,
            "buyer_identifier": buyer_identifier,
            "buyer_name": buyer_name,
            "buyer_cell_phone": buyer_cell_phone,
            "buyer_address": buyer_address,
            "issue_notify_email": issue_notify_email,
            "invoice_type": invoice_type,
            "tax_rate": tax_rate,
            "sales_amount": sales_amount,
            "zero_tax_sales_amount": zero_tax_sales_amount,
            "customs_clearance_mark_enum": customs_clearance_mark_enum,
            "free_tax_sales_amount": free_tax_sales_amount,
            "payment_type": payment_type,
            "carrier": carrier,
            "npoban": npoban,
            "invoice_number": invoice_number,
            "remark": remark,
        }
        for key, value in optional.items():
            if value is not None:
                payload[key] = value

        result = await self._invoice_request(
            "issue", self.ENDPOINT_ISSUE, payload, headers, notify_failure=True
        )

        logger.info(
            "E-invoice issued",
            extra={
                "order_number": order_number,
                "rec_invoice_id": result.get("rec_invoice_id"),
                "invoice_number": result.get("invoice_number"),
                "total_amount": total_amount,
            },
        )

        self._send_signal(invoice_issued, response=result)

        return result

    async def void_invoice(
        self,
        rec_invoice_id: str,
        invoice_number: str,
        void_order_id: str,
        void_reason: str,
        void_notify_email: NotifyEmail | None = None,
        headers: dict[str, str] | None = None,
    ) -> VoidInvoiceResponse:
        """
        Void an issued e-invoice.

        Raises:
            InvoiceError: On non-zero TapPay status
        """
        from .signals import invoice_voided

        payload: dict[str, Any] = {
            "partner_key": self.partner_key,
            "rec_invoice_id": rec_invoice_id,
            "invoice_number": invoice_number,
            "void_order_id": void_order_id,
            "void_reason": void_reason,
        }

        if void_notify_email is not None:
            payload["void_notify_email"] = void_notify_email

        logger.warning(
            "E-invoice void initiated",
            extra={"rec_invoice_id": rec_invoice_id, "invoice_number": invoice_number},
        )

        result = await self._invoice_request(
            "void", self.ENDPOINT_VOID, payload, headers, notify_failure=True
        )

        self._send_signal(
            invoice_voided,
            rec_invoice_id=rec_invoice_id,
            reissued=False,
            response=result,
        )

        return result

    async def void_with_reissue(
        self,
        rec_invoice_id: str,
        reissue_order_id: str,
        reissue_reason: str,
        headers: dict[str, str] | None = None,
    ) -> VoidWithReissueResponse:
        """
        Void an e-invoice and have a replacement issued under a new order ID.

        Raises:
            InvoiceError: On non-zero TapPay status
        """
        from .signals import invoice_voided

        payload: dict[str, Any] = {
            "partner_key": self.partner_key,
            "rec_invoice_id": rec_invoice_id,
            "reissue_order_id": reissue_order_id,
            "reissue_reason": reissue_reason,
        }

        logger.warning(
            "E-invoice void with reissue initiated",
            extra={"rec_invoice_id": rec_invoice_id, "reissue_order_id": reissue_order_id},
        )

        result = await self._invoice_request(
            "void_with_reissue",
            self.ENDPOINT_VOID_WITH_REISSUE,
            payload,
            headers,
            notify_failure=True,
        )

        self._send_signal(
            invoice_voided,
            rec_invoice_id=rec_invoice_id,
            reissued=True,
            response=result,
        )

        return result

    async def allowance_invoice(
        self,
        rec_invoice_id: str,
        details: list[AllowanceDetail],
        allowance_amount: int,
        allowance_reason: str,
        allowance_sale_amount: int,
        allowance_tax_amount: int,
        allowance_number: str | None = None,
        allowance_notify_email: NotifyEmail | None = None,
        headers: dict[str, str] | None = None,
    ) -> AllowanceResponse:
        """
        Issue an allowance (partial credit) against an e-invoice.

        Args:
            rec_invoice_id: TapPay invoice ID
            details: Allowance line items
            allowance_amount: Total allowance amount
            allowance_reason: Reason shown to the buyer
            allowance_sale_amount: Allowance sales amount
            allowance_tax_amount: Allowance tax amount
            allowance_number: Merchant allowance number (TapPay generates one if omitted)
            allowance_notify_email: "AUTO" or "MANU"
            headers: Extra HTTP headers

        Returns:
            AllowanceResponse, including remain_amount

        Raises:
            InvoiceError: On non-zero TapPay status
        """
        from .signals import invoice_allowance_issued

        payload: dict[str, Any] = {
            "partner_key": self.partner_key,
            "rec_invoice_id": rec_invoice_id,
            "details": details,
            "allowance_amount": allowance_amount,
            "allowance_reason": allowance_reason,
            "allowance_sale_amount": allowance_sale_amount,
            "allowance_tax_amount": allowance_tax_amount,
        }

        if allowance_number is not None:
            payload["allowance_number"] = allowance_number

        if allowance_notify_email is not None:
            payload["allowance_notify_email"] = allowance_notify_email

        result = await self._invoice_request(
            "allowance", self.ENDPOINT_ALLOWANCE, payload, headers, notify_failure=True
        )

        logger.info(
            "E-invoice allowance issued",
            extra={
                "rec_invoice_id": rec_invoice_id,
                "allowance_number": result.get("allowance_number"),
                "allowance_amount": allowance_amount,
                "remain_amount": result.get("remain_amount"),
            },
        )

        self._send_signal(
            invoice_allowance_issued,
            rec_invoice_id=rec_invoice_id,
            response=result,
        )

        return result

    async def query_invoice(
        self,
        rec_invoice_id: str,
        headers: dict[str, str] | None = None,
    ) -> QueryInvoiceResponse:
        """Query an e-invoice by TapPay invoice ID."""
        payload: dict[str, Any] = {
            "partner_key": self.partner_key,
            "rec_invoice_id": rec_invoice_id,
        }

        return await self._invoice_request(
            "query", self.ENDPOINT_QUERY, payload, headers, notify_failure=False
        )

    async def query_allowance(
        self,
        rec_invoice_id: str,
        allowance_number: str,
        headers: dict[str, str] | None = None,
    ) -> QueryAllowanceResponse:
        """Query one allowance of an e-invoice."""
        payload: dict[str, Any] = {
            "partner_key": self.partner_key,
            "rec_invoice_id": rec_invoice_id,
            "allowance_number": allowance_number,
        }

        return await self._invoice_request(
            "query_allowance",
            self.ENDPOINT_QUERY_ALLOWANCE,
            payload,
            headers,
            notify_failure=False,
        )
