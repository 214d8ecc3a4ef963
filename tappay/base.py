"""
Shared request pipeline for the TapPay clients.

Both TapPay APIs speak the same protocol: a JSON POST to a fixed host with an
``x-api-key`` header, answered by a JSON object whose ``status`` field is the
only success signal (0 = success). HTTP status codes are not consulted.

This module provides:
- resolve_host: environment flag → hostname
- get_setting: Django settings lookup that also works outside a Django project
- BaseTapPayClient: transport, response discrimination and signal dispatch used by every operation
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import requests
from django.conf import settings
from django.dispatch import Signal

from .exceptions import ApiError, ResponseParseError
from .utils import mask_secret

logger: logging.Logger = logging.getLogger(__name__)

PRODUCTION = "production"


def resolve_host(env: str | None, hosts: tuple[str, str]) -> str:
    """
    Pick the host for an environment.

    Args:
        env: "production" selects the live host; anything else (including None)
            selects the sandbox host
        hosts: (sandbox_host, production_host) pair of the client family

    Returns:
        Hostname without scheme or port
    """
    sandbox_host, production_host = hosts
    if env == PRODUCTION:
        return production_host
    return sandbox_host


def get_setting(name: str, default: Any = None) -> Any:
    """Read a Django setting, returning ``default`` when Django is not configured."""
    if not settings.configured:
        return default
    return getattr(settings, name, default)


class BaseTapPayClient:
    """
    Common transport and response handling for TapPay API clients.

    Subclasses set HOSTS and build payloads; every call goes through _request.

    Attributes:
        partner_key: TapPay partner key, sent as ``x-api-key`` and in each payload
        host: Resolved API host
        timeout: Transport timeout in seconds (None = no timeout)
    """

    # (sandbox, production)
    HOSTS: tuple[str, str] = ("", "")
    PORT = 443

    def __init__(
        self,
        partner_key: str,
        env: str | None = None,
        timeout: float | None = None,
    ):
        self.partner_key = partner_key
        self.env = env
        self.host = resolve_host(env, self.HOSTS)
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return f"https://{self.host}:{self.PORT}{path}"

    async def _request(
        self,
        path: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """
        Send one API request and classify the response.

        Args:
            path: API path (e.g. "/tpc/payment/pay-by-prime")
            payload: Wire payload
            headers: Extra headers passed through verbatim

        Returns:
            Parsed response body (status == 0)

        Raises:
            requests.exceptions.RequestException: Transport failure, unchanged
            ResponseParseError: Body is not a JSON object
            ApiError: Response status is non-zero
        """
        body = json.dumps(payload).encode("utf-8")

        request_headers = dict(headers or {})
        request_headers.update(
            {
                "Content-Type": "application/json",
                "Content-Length": str(len(body)),
                "x-api-key": self.partner_key,
            }
        )

        logger.info(
            "TapPay API request",
            extra={
                "path": path,
                "host": self.host,
                "partner_key": mask_secret(self.partner_key),
                "order_number": payload.get("order_number"),
            },
        )

        content = await asyncio.to_thread(self._send, path, body, request_headers)
        return self._parse_response(path, content)

    def _send(self, path: str, body: bytes, headers: dict[str, str]) -> bytes:
        """POST the serialized payload and return the complete response body."""
        try:
            response = requests.post(
                self._url(path),
                data=body,
                headers=headers,
                timeout=self.timeout,
            )
            return response.content
        except requests.exceptions.RequestException as e:
            logger.error(
                "TapPay API request failed",
                extra={"path": path, "host": self.host, "error": str(e)},
            )
            raise

    def _send_signal(self, signal: Signal, **kwargs: Any) -> None:
        """Send a lifecycle signal. Receiver failures are logged, never raised."""
        for receiver, result in signal.send_robust(sender=self.__class__, **kwargs):
            if isinstance(result, Exception):
                logger.error(
                    "TapPay signal receiver failed",
                    exc_info=result,
                    extra={
                        "receiver": getattr(receiver, "__qualname__", repr(receiver)),
                        "error": str(result),
                    },
                )

    def _parse_response(self, path: str, content: bytes) -> dict[str, Any]:
        try:
            data = json.loads(content)
        except ValueError:
            data = None

        if not isinstance(data, dict):
            logger.error(
                "TapPay API response parse failed",
                extra={"path": path, "content_length": len(content)},
            )
            raise ResponseParseError()

        status = data.get("status")
        # JSON false would compare equal to 0
        if isinstance(status, bool) or status != 0:
            msg = data.get("msg") or "Unknown error"
            logger.error(
                "TapPay API error",
                extra={"path": path, "status": status, "api_message": msg},
            )
            raise ApiError(status=status, msg=msg, response=data)

        logger.info(
            "TapPay API success",
            extra={"path": path, "status": status},
        )
        return data
