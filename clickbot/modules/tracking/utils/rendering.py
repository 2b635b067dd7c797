"""
Texts and buttons shown in the chat for tracked links.
"""
from html import escape

from clickbot.modules.tracking.domain.models import InlineButton, TrackedLink


HELP_TEXT = (
    "👋 Envie /track seguido de um link para criar um contador de cliques.\n\n"
    "Exemplo: /track https://example.com"
)
INVALID_URL_TEXT = "❌ Link inválido. Use um endereço completo, por exemplo: /track https://example.com"


def format_counter_label(clicks: int) -> str:
    """
    Label of the counter button.

    Examples:
        >>> format_counter_label(0)
        'Clicks: 0'
    """
    return f"Clicks: {clicks}"


def format_ack_text(clicks: int) -> str:
    """
    Popup text shown to the user after a press.

    Examples:
        >>> format_ack_text(1)
        'Contador atualizado! (1 cliques)'
    """
    return f"Contador atualizado! ({clicks} cliques)"


def format_link_message(url: str) -> str:
    return f"🔗 {escape(url)}"


def build_counter_button(link_id: str, url: str, clicks: int) -> InlineButton:
    return InlineButton(
        label=format_counter_label(clicks),
        activation_url=url,
        correlation_token=link_id,
    )


def counter_button_for(link: TrackedLink) -> InlineButton:
    return build_counter_button(link.link_id, link.url, link.clicks)
