"""
Formateo de respuestas generativas para el agente conversacional.

Limpia el markdown de énfasis que devuelve Gemini y adapta la longitud
del texto al límite de transporte de los mensajes de fulfillment.
"""

import math
import re
from typing import List, Tuple

TRUNCATION_MARKER = "…"

OVERFLOW_TRUNCATE = "truncate"
OVERFLOW_SPLIT = "split"

_BOLD_ASTERISK = re.compile(r"\*\*(?=\S)(.+?)(?<=\S)\*\*", re.DOTALL)
_BOLD_UNDERSCORE = re.compile(r"(?<!\w)__(?=\S)(.+?)(?<=\S)__(?!\w)", re.DOTALL)
_ITALIC_ASTERISK = re.compile(r"(?<![\*\w])\*(?=[^\s\*])(.+?)(?<=[^\s\*])\*(?![\*\w])")
_ITALIC_UNDERSCORE = re.compile(r"(?<![_\w/.:])_(?=[^\s_])(.+?)(?<=[^\s_/])_(?![_\w/])")
_EXTRA_BLANK_LINES = re.compile(r"\n{3,}")

# Links se protegen antes de limpiar: "_" y "*" dentro de una URL son literales
_URL = re.compile(r"(?:https?://|www\.)[^\s*<>()\[\]]+")
_URL_PLACEHOLDER = "\x00{}\x00"
_URL_PLACEHOLDER_PATTERN = re.compile(r"\x00(\d+)\x00")


def _mask_urls(text: str) -> Tuple[str, List[str]]:
    urls: List[str] = []

    def _replace(match: "re.Match[str]") -> str:
        urls.append(match.group(0))
        return _URL_PLACEHOLDER.format(len(urls) - 1)

    return _URL.sub(_replace, text), urls


def _unmask_urls(text: str, urls: List[str]) -> str:
    return _URL_PLACEHOLDER_PATTERN.sub(lambda match: urls[int(match.group(1))], text)


def strip_markdown_emphasis(text: str) -> str:
    """
    Elimina marcadores de negrita e itálica (**x**, __x__, *x*, _x_).

    Las viñetas de lista ("* item"), los identificadores con guion bajo
    (snake_case), las URLs y los paths se conservan.

    Args:
        text: Texto devuelto por el modelo

    Returns:
        Texto sin marcadores de énfasis
    """
    cleaned, urls = _mask_urls(text)
    cleaned = _BOLD_ASTERISK.sub(r"\1", cleaned)
    cleaned = _BOLD_UNDERSCORE.sub(r"\1", cleaned)
    cleaned = _ITALIC_ASTERISK.sub(r"\1", cleaned)
    cleaned = _ITALIC_UNDERSCORE.sub(r"\1", cleaned)
    cleaned = _EXTRA_BLANK_LINES.sub("\n\n", cleaned)
    return _unmask_urls(cleaned, urls).strip()


def truncate_reply(text: str, max_length: int, marker: str = TRUNCATION_MARKER) -> str:
    """
    Recorta el texto a max_length caracteres, marcador incluido.

    Si el texto ya cabe se devuelve intacto; si se recorta, el resultado
    siempre termina con el marcador.
    """
    if len(text) <= max_length:
        return text

    if max_length <= len(marker):
        return marker[:max_length]

    head = text[:max_length - len(marker)].rstrip()
    return head + marker


def split_reply(text: str, max_length: int) -> List[str]:
    """
    Divide el texto en segmentos consecutivos de como máximo max_length.

    Devuelve ceil(len(text) / max_length) segmentos; un texto vacío
    produce una lista vacía.
    """
    if max_length <= 0:
        raise ValueError("max_length debe ser positivo")

    count = math.ceil(len(text) / max_length)
    return [text[i * max_length:(i + 1) * max_length] for i in range(count)]


def format_answer(text: str, max_length: int, policy: str = OVERFLOW_TRUNCATE) -> List[str]:
    """
    Pipeline completo de post-procesado de una respuesta generativa.

    Args:
        text: Respuesta cruda del modelo
        max_length: Límite de caracteres por segmento
        policy: "truncate" (un segmento con marcador) o "split" (varios segmentos)

    Returns:
        Lista de segmentos de texto listos para fulfillmentMessages;
        vacía si la respuesta queda en blanco tras limpiarla
    """
    cleaned = strip_markdown_emphasis(text)
    if not cleaned:
        return []

    if policy == OVERFLOW_SPLIT:
        return split_reply(cleaned, max_length)
    if policy == OVERFLOW_TRUNCATE:
        return [truncate_reply(cleaned, max_length)]

    raise ValueError(f"Política de desborde desconocida: {policy}")
