"""
pytest fixtures for django-tappay tests.

Provides reusable test fixtures for:
- Payment and e-invoice client instances
- Caller-side request data (cardholder, invoice line items)
- TapPay API response mocks
- Signal receivers
"""

from unittest.mock import MagicMock

import pytest

from tappay.client import TapPayClient
from tappay.einvoice import EInvoiceClient


@pytest.fixture
def tappay_client():
    """Create a TapPayClient instance for testing."""
    return TapPayClient(
        partner_key="partner_test_key",
        merchant_id="test_merchant_id",
        env="sandbox",
    )


@pytest.fixture
def group_client():
    """Create a TapPayClient that charges on behalf of a merchant group."""
    return TapPayClient(
        partner_key="partner_test_key",
        merchant_group_id="test_group_id",
        env="sandbox",
    )


@pytest.fixture
def einvoice_client():
    """Create an EInvoiceClient instance for testing."""
    return EInvoiceClient(partner_key="partner_test_key", env="sandbox")


@pytest.fixture
def cardholder():
    return {
        "phone_number": "+886912345678",
        "name": "王小明",
        "email": "test@example.com",
    }


@pytest.fixture
def invoice_details():
    return [
        {
            "sequence_id": "001",
            "sub_amount": 300,
            "unit_price": 300,
            "quantity": 1,
            "description": "example",
            "tax_type": 1,
        }
    ]


@pytest.fixture
def allowance_details():
    return [
        {
            "sequence_id": "001",
            "sub_amount": 99,
            "unit_price": 99,
            "quantity": 1,
            "tax_type": 1,
            "tax_amount": 0,
        }
    ]


# ============================================================
# TapPay API Response Mocks
# ============================================================


@pytest.fixture
def mock_pay_success():
    """Mock successful pay by prime response."""
    return {
        "status": 0,
        "msg": "Success",
        "amount": 100,
        "currency": "TWD",
        "rec_trade_id": "D20250212ABCDEF",
        "bank_transaction_id": "TP20250212ABCDEF",
        "order_number": "ORDER-001",
        "auth_code": "123456",
        "card_info": {
            "bin_code": "424242",
            "last_four": "4242",
            "issuer": "JPMORGAN CHASE BANK NA",
            "funding": 0,
            "type": 1,
            "level": "",
            "country": "UNITED STATES",
            "country_code": "US",
        },
        "card_secret": {
            "card_key": "CARD_KEY_SECRET",
            "card_token": "CARD_TOKEN_SECRET",
        },
        "transaction_time_millis": 1739347200000,
        "acquirer": "TW_CTBC",
    }


@pytest.fixture
def mock_3ds_success(mock_pay_success):
    """Mock pay by prime response asking for 3-D Secure redirect."""
    data = dict(mock_pay_success)
    data["payment_url"] = "https://sandbox-redirect.tappaysdk.com/redirect/3ds"
    return data


@pytest.fixture
def mock_pay_failure():
    """Mock declined charge."""
    return {"status": 10003, "msg": "Card Error"}


@pytest.fixture
def mock_refund_success():
    return {
        "status": 0,
        "msg": "Success",
        "rec_trade_id": "D20250212ABCDEF",
        "refund_amount": 50,
        "is_capture": True,
    }


@pytest.fixture
def mock_record_success():
    return {
        "status": 0,
        "msg": "Success",
        "number_of_transactions": 1,
        "trade_records": [
            {
                "rec_trade_id": "D20250212ABCDEF",
                "amount": 100,
                "currency": "TWD",
                "record_status": 0,
                "order_number": "ORDER-001",
            }
        ],
    }


@pytest.fixture
def mock_issue_success():
    return {
        "status": 0,
        "msg": "SUCCESS",
        "invoice_result_error_code": "0",
        "invoice_result_msg": "Operation Succeed",
        "rec_invoice_id": "EIV20250212TUC77WU9Q",
        "order_number": "TP_TEST_01",
        "invoice_issue_order_number": "a1a1451b-810e-4cdb-8b49-f303d609249b",
        "invoice_number": "WH00000243",
        "invoice_date": "20250212",
        "invoice_time": "123147",
    }


@pytest.fixture
def mock_allowance_success():
    return {
        "status": 0,
        "msg": "SUCCESS",
        "invoice_allowance_order_number": "8e7b3c1a",
        "allowance_number": "1739521402386",
        "invoice_number": "WH00000245",
        "remain_amount": 201,
        "allowance_date": "20250214",
        "allowance_time": "162322",
    }


# ============================================================
# Signal Test Fixtures
# ============================================================


@pytest.fixture
def signal_receiver():
    """
    Factory for creating signal receivers that track calls.

    Usage:
        def test_signal(signal_receiver):
            receiver = signal_receiver()
            payment_succeeded.connect(receiver.handler)
            # ... trigger signal
            assert receiver.called
            assert receiver.call_count == 1
    """

    def _create_receiver():
        receiver = MagicMock()
        receiver.called = False
        receiver.call_count = 0
        receiver.last_kwargs = None

        def handler(sender, **kwargs):
            receiver.called = True
            receiver.call_count += 1
            receiver.last_kwargs = kwargs

        receiver.handler = handler
        return receiver

    return _create_receiver
