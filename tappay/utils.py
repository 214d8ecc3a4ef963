"""
Utility functions for TapPay integration.

Usage:
    from tappay.utils import mask_card_info, mask_secret

    logger.info("Charged", extra={"card": mask_card_info(result.get("card_info"))})
"""

from __future__ import annotations

from typing import Any


def mask_secret(value: str | None, visible: int = 4) -> str:
    """
    Mask a secret for logs, keeping only its last characters.

    Args:
        value: Partner key, card token, or similar
        visible: Number of trailing characters left readable

    Returns:
        Masked value (e.g., "********abcd"), or empty string

    Examples:
        >>> mask_secret("partner_1234567890abcd")
        "******************abcd"
        >>> mask_secret("abc")
        "***"
    """
    if not value:
        return ""

    if len(value) <= visible:
        return "*" * len(value)

    return "*" * (len(value) - visible) + value[-visible:]


def mask_card_info(card_info: dict[str, Any] | None) -> str:
    """
    Format TapPay card_info for display, keeping bin code and last four digits.

    Args:
        card_info: card_info block from a TapPay response

    Returns:
        Masked card number (e.g., "424242******4242"), or empty string

    Examples:
        >>> mask_card_info({"bin_code": "424242", "last_four": "4242"})
        "424242******4242"
        >>> mask_card_info({"last_four": "4242"})
        "******4242"
    """
    if not card_info:
        return ""

    bin_code = card_info.get("bin_code") or ""
    last_four = card_info.get("last_four") or ""

    if not bin_code and not last_four:
        return ""

    return f"{bin_code}******{last_four}"
