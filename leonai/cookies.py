from __future__ import annotations

from pathlib import Path
from typing import Protocol, Union

import httpx


class CookieStore(Protocol):
    """Where the browser session cookie is read from and written back to."""

    def get_cookie(self) -> str:
        """Return the raw ``name=value; ...`` cookie header."""

    def set_cookie(self, cookie: str) -> None:
        """Persist the raw cookie header."""


class FileCookieStore:
    """Cookie header kept in a flat text file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def get_cookie(self) -> str:
        return self.path.read_text().strip()

    def set_cookie(self, cookie: str) -> None:
        self.path.write_text(cookie)

    def __repr__(self) -> str:
        return f"<FileCookieStore path={str(self.path)!r}>"


def load_cookies(jar: httpx.Cookies, raw: str, domain: str) -> None:
    """Parse a raw cookie header into *jar* for *domain*."""
    for chunk in raw.split(";"):
        chunk = chunk.strip()
        if not chunk:
            continue
        name, sep, value = chunk.partition("=")
        if not sep:
            raise ValueError(f"invalid cookie: {chunk!r}")
        jar.set(name.strip(), value.strip(), domain=domain)


def dump_cookies(jar: httpx.Cookies, domain: str) -> str:
    return "; ".join(
        f"{cookie.name}={cookie.value}"
        for cookie in jar.jar
        if domain.endswith(cookie.domain.lstrip("."))
    )
