"""Splitting of URLs into the parts an HTTP request needs."""

from __future__ import annotations

import re

_URL = re.compile(
    r"(?:(?P<schema>[A-Za-z]+)://(?P<authority>[^/?#]*))?"
    r"(?P<path>[/*][^?#]*)?"
    r"(?:\?(?P<query>[^#]*))?"
    r"(?:#(?P<fragment>.*))?",
    re.DOTALL,
)

_SECURE_SCHEMAS = ("https", "wss")


def _split_host_port(hostport: str) -> tuple[str, str]:
    if hostport.startswith("["):
        end = hostport.find("]")
        if end < 0:
            raise ValueError("unterminated IPv6 address")
        host, rest = hostport[1:end], hostport[end + 1:]
        if rest and not rest.startswith(":"):
            raise ValueError(f"unexpected text after host: {rest!r}")
        return host, rest
    host, colon, port = hostport.partition(":")
    return host, colon + port


class ParsedUrl:
    """Schema, host, port, path, query and user info of a URL."""

    __slots__ = ("schema", "host", "port", "path", "query", "userinfo")

    def __init__(self, url: str) -> None:
        if any(ord(ch) <= 0x20 or ord(ch) == 0x7F for ch in url):
            raise ValueError(f"invalid character in URL: {url!r}")
        match = _URL.fullmatch(url)
        if match is None:
            raise ValueError(f"invalid URL: {url!r}")
        schema = match.group("schema") or ""
        path = match.group("path") or ""
        if not schema and not path and url:
            raise ValueError(f"invalid URL: {url!r}")

        host = userinfo = ""
        port = 0
        if schema:
            userinfo, _, hostport = match.group("authority").rpartition("@")
            host, port_part = _split_host_port(hostport)
            if not host:
                raise ValueError(f"URL has no host: {url!r}")
            if port_part:
                digits = port_part[1:]
                if not (digits.isascii() and digits.isdigit()):
                    raise ValueError(f"invalid port in URL: {url!r}")
                port = int(digits)
                if port > 0xFFFF:
                    raise ValueError(f"port out of range: {port}")

        if not port:
            port = 443 if schema in _SECURE_SCHEMAS else 80

        self.schema = schema
        self.host = host
        self.port = port
        self.path = path or "/"
        self.query = match.group("query") or ""
        self.userinfo = userinfo

    def __repr__(self) -> str:
        return (
            f"ParsedUrl(schema={self.schema!r}, host={self.host!r}, port={self.port}, "
            f"path={self.path!r}, query={self.query!r})"
        )