"""Language segment handling for tenant routes.

The language is forwarded to the locale layer untouched; tenant resolution
never reads it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from src.config import settings


@dataclass(frozen=True)
class LanguageAllowed:
    lang: str


@dataclass(frozen=True)
class LanguageRedirect:
    target: str


LanguageDecision = Union[LanguageAllowed, LanguageRedirect]


def _split_path(path: str, segment: str) -> tuple[str, str]:
    """Split ``path`` around ``segment`` into (mount prefix, rest of path)."""
    if path.endswith(segment):
        return path[: -len(segment)], ""
    index = path.find(segment + "/")
    if index == -1:
        return "", ""
    return path[:index], path[index + len(segment):]


def check_language(
    path: str,
    lang: str | None,
    tenant: str | None = None,
    supported: list[str] | None = None,
    fallback: str | None = None,
) -> LanguageDecision:
    """Accept a supported ``lang`` or redirect to the fallback language.

    The redirect keeps the tenant prefix and everything after the language
    segment, e.g. ``/acme/fr/orders`` becomes ``/acme/nl/orders``. Anything
    mounted in front of the tenant prefix, such as ``/api/v1``, is kept too.
    """
    supported = supported if supported is not None else settings.supported_languages_list
    fallback = fallback or settings.default_language

    if lang and lang in supported:
        return LanguageAllowed(lang)

    tenant_prefix = f"/{tenant}" if tenant else ""
    lang_prefix = f"{tenant_prefix}/{lang}" if lang else tenant_prefix
    mount, rest = _split_path(path, lang_prefix) if lang_prefix else ("", "")
    return LanguageRedirect(f"{mount}{tenant_prefix}/{fallback}{rest}")
