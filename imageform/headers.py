from __future__ import annotations

from collections.abc import Iterable

_CTL_CHARS = str.maketrans("", "", "\r\n\x00")


def strip_ctl(value: str) -> str:
    """Remove CR, LF and NUL so a value cannot start a new header line."""
    return value.translate(_CTL_CHARS)


def sanitize_header(name: str, value: str) -> tuple[str, str]:
    return strip_ctl(name), strip_ctl(value)


def escape_quotes(value: str) -> str:
    """Escape a value for use inside a quoted header parameter."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def content_disposition(name: str, filename: str | None = None) -> str:
    """
    Build a form-data ``Content-Disposition`` value.

    Both parameters are quoted strings; backslashes and double quotes are
    escaped so the value cannot break out of its quotes.
    """
    value = f'form-data; name="{escape_quotes(strip_ctl(name))}"'
    if filename is not None:
        value += f'; filename="{escape_quotes(strip_ctl(filename))}"'
    return value


def canonicalize_headers(
    default_headers: Iterable[tuple[str, str]],
    user_headers: dict[str, str] | None,
    order: Iterable[str] = (),
) -> list[tuple[str, str]]:
    """
    Merge request headers case-insensitively.

    User headers win over defaults. Names listed in ``order`` come first, in
    that order; the rest follow in insertion order.
    """
    merged: dict[str, tuple[str, str]] = {}
    for name, value in default_headers:
        name, value = sanitize_header(name, value)
        merged[name.lower()] = (name, value)
    if user_headers:
        for name, value in user_headers.items():
            name, value = sanitize_header(name, value)
            merged[name.lower()] = (name, value)

    ordered: list[tuple[str, str]] = []
    for name in order:
        key = name.lower()
        if key in merged:
            ordered.append(merged.pop(key))
    ordered.extend(merged.values())
    return ordered
