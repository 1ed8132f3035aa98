"""Widget configuration."""

from dataclasses import dataclass


@dataclass(frozen=True)
class WidgetConfig:
    """Settings for one embedded widget instance.

    Passed explicitly to the client, wizard and poller; nothing in the widget
    reads environment variables.
    """

    base_url: str
    timeout: float = 120.0
    functions_prefix: str = "/functions/v1"
    api_prefix: str = "/api/v1"
    poll_interval: float = 5.0
    max_poll_duration: float = 600.0
    completion_pause: float = 0.8
    max_image_edge: int = 1024
    jpeg_quality: int = 85
    clinic_whatsapp_number: str = ""
    whatsapp_message: str = "Hola, acabo de completar mi diseño de sonrisa y quiero ver mi vídeo."
