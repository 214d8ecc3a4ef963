from django.apps import AppConfig


class TapPayConfig(AppConfig):
    """Django app configuration for TapPay."""

    name = "tappay"
    verbose_name = "TapPay Payment"

    def ready(self) -> None:
        """Import signals when the app is ready."""
        from . import signals  # noqa: F401
