"""Configurações centralizadas do chatbot_widget.

Este módulo exporta:
- Settings: classe de configuração via variáveis de ambiente
- get_settings: função cacheada para obter instância única
- Defaults do orçamento de tokens da janela de contexto

Uso típico:
    from chatbot_widget.config import get_settings
"""

from chatbot_widget.config.settings import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_RESPONSE_RESERVED_TOKENS,
    DEFAULT_SUMMARY_TOKENS,
    DEFAULT_SYSTEM_PROMPT_TOKENS,
    Settings,
    get_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_SYSTEM_PROMPT_TOKENS",
    "DEFAULT_RESPONSE_RESERVED_TOKENS",
    "DEFAULT_SUMMARY_TOKENS",
]
