"""
Shared constants and helpers for django-tappay tests.
"""

import json

import responses

PAYMENT_SANDBOX = "https://sandbox.tappaysdk.com:443"
PAYMENT_PRODUCTION = "https://prod.tappaysdk.com:443"
INVOICE_SANDBOX = "https://sandbox-invoice.tappaysdk.com:443"
INVOICE_PRODUCTION = "https://invoice.tappaysdk.com:443"


def request_body(index: int = 0) -> dict:
    """Decode the JSON body of a recorded request."""
    return json.loads(responses.calls[index].request.body)
