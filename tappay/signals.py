"""
Django signals for TapPay payment and e-invoice events.

Usage:
    from django.dispatch import receiver
    from tappay.signals import payment_succeeded, payment_failed

    @receiver(payment_succeeded)
    def send_notification(sender, method, response, **kwargs):
        # Send Telegram, SMS, or Slack notification
        pass

    @receiver(payment_failed)
    def log_failure(sender, stage, status, msg, **kwargs):
        sentry_sdk.capture_message(f"TapPay {stage} failed: {status}")

Signals:
    payment_succeeded: Fired when a charge succeeds (pay by prime / card token)
    payment_refunded: Fired when a refund succeeds
    payment_failed: Fired when TapPay rejects a charge or refund
    invoice_issued: Fired when an e-invoice is issued
    invoice_voided: Fired when an e-invoice is voided (with or without reissue)
    invoice_allowance_issued: Fired when an allowance is issued
    invoice_failed: Fired when TapPay rejects an e-invoice operation

Transport and parse failures do not fire signals; they propagate to the caller.
A receiver that raises is logged and does not affect the operation result.
"""

from django.dispatch import Signal

# Fired when a charge is accepted by TapPay.
#
# Arguments:
#   sender: TapPayClient class
#   method: "pay_by_prime" or "pay_by_token"
#   response: Parsed TapPay response (rec_trade_id, card_info, payment_url, ...)
payment_succeeded = Signal()

# Fired when a refund is accepted.
#
# Arguments:
#   sender: TapPayClient class
#   rec_trade_id: Refunded transaction
#   response: Parsed TapPay response (refund_amount, is_capture)
payment_refunded = Signal()

# Fired when TapPay answers a charge or refund with a non-zero status.
#
# Arguments:
#   sender: TapPayClient class
#   stage: "pay_by_prime", "pay_by_token" or "refund"
#   status: TapPay status code
#   msg: TapPay error message
payment_failed = Signal()

# Fired when an e-invoice is issued.
#
# Arguments:
#   sender: EInvoiceClient class
#   response: Parsed TapPay response (rec_invoice_id, invoice_number, ...)
invoice_issued = Signal()

# Fired when an e-invoice is voided.
#
# Arguments:
#   sender: EInvoiceClient class
#   rec_invoice_id: Voided invoice
#   reissued: True for void-with-reissue
#   response: Parsed TapPay response
invoice_voided = Signal()

# Fired when an allowance is issued against an e-invoice.
#
# Arguments:
#   sender: EInvoiceClient class
#   rec_invoice_id: Invoice the allowance applies to
#   response: Parsed TapPay response (allowance_number, remain_amount, ...)
invoice_allowance_issued = Signal()

# Fired when TapPay rejects issue, void, void-with-reissue or allowance.
#
# Arguments:
#   sender: EInvoiceClient class
#   stage: "issue", "void", "void_with_reissue" or "allowance"
#   status: TapPay status code
#   msg: TapPay error message
invoice_failed = Signal()
