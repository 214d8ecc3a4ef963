"""
Django TapPay - Client for the TapPay payment and e-invoice APIs

Provides:
- TapPayClient for card payments (pay by prime, pay by card token, refund, records)
- EInvoiceClient for e-invoices (issue, void, reissue, allowance, queries)
- Signals for payment and invoice lifecycle events

Requirements:
- Python 3.12+
- Django 5.0+ (settings are read only when configured)
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
