"""Cookie parsing and the per-exchange cookie jar.

A :class:`CookieJar` accumulates the cookies seen across the hops of one
redirect chain.  Jars are immutable: :meth:`CookieJar.merge` is the only way to
combine them and always returns a new jar, so a hop can hand its jar to the next
hop without either side observing later changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Optional

__all__ = ["Cookie", "CookieJar", "parse_set_cookie"]


@dataclass(frozen=True)
class Cookie:
    """One cookie as announced by a ``Set-Cookie`` header.

    Attributes:
        name: Cookie name.
        value: Cookie value, verbatim (quotes are not stripped).
        attributes: Attribute mapping keyed by lower-cased attribute name.
            Flag attributes such as ``Secure`` map to ``None``.
    """

    name: str
    value: str
    attributes: Mapping[str, Optional[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        folded = {key.lower(): value for key, value in self.attributes.items()}
        object.__setattr__(self, "attributes", MappingProxyType(folded))

    def attribute(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Look up an attribute case-insensitively."""
        return self.attributes.get(name.lower(), default)

    def has_attribute(self, name: str) -> bool:
        return name.lower() in self.attributes

    def __str__(self) -> str:
        parts = [f"{self.name}={self.value}"]
        for key, value in self.attributes.items():
            parts.append(key if value is None else f"{key}={value}")
        return "; ".join(parts)


def parse_set_cookie(line: str) -> Cookie:
    """Parse one ``Set-Cookie`` header value.

    The first ``;``-separated segment is ``name=value``; every remaining
    segment is ``attr`` or ``attr=value``.  Unknown attributes are kept.

    Raises:
        ValueError: If the line has no cookie name.

    Examples:
        >>> cookie = parse_set_cookie("session=abc; Path=/; HttpOnly")
        >>> (cookie.name, cookie.value, cookie.attribute("path"))
        ('session', 'abc', '/')
    """
    segments = line.split(";")
    name, _, value = segments[0].partition("=")
    name = name.strip()
    if not name:
        raise ValueError(f"Set-Cookie header without a cookie name: {line!r}")
    attributes: Dict[str, Optional[str]] = {}
    for segment in segments[1:]:
        segment = segment.strip()
        if not segment:
            continue
        key, sep, attr_value = segment.partition("=")
        attributes[key.strip().lower()] = attr_value.strip() if sep else None
    return Cookie(name=name, value=value.strip(), attributes=attributes)


class CookieJar(Mapping[str, Cookie]):
    """Insertion-ordered, name-keyed collection of cookies.

    Writing a name that already exists keeps its original position and
    replaces its cookie (last write wins).  The empty jar is the identity for
    :meth:`merge`.
    """

    __slots__ = ("_cookies",)

    def __init__(self, cookies: Iterable[Cookie] = ()) -> None:
        store: Dict[str, Cookie] = {}
        for cookie in cookies:
            store[cookie.name] = cookie
        self._cookies = store

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, str]]) -> "CookieJar":
        """Build a jar from plain ``name -> value`` pairs (no attributes)."""
        if not mapping:
            return cls()
        return cls(Cookie(name=name, value=str(value)) for name, value in mapping.items())

    @classmethod
    def from_set_cookie_headers(cls, lines: Iterable[str]) -> "CookieJar":
        """Build a jar from raw ``Set-Cookie`` header values, in order."""
        return cls(parse_set_cookie(line) for line in lines)

    def merge(self, other: Mapping[str, Cookie]) -> "CookieJar":
        """Return the union of both jars; ``other`` wins on name collisions.

        Order is this jar's order followed by names first seen in ``other``.
        """
        merged = CookieJar()
        merged._cookies = {**self._cookies, **dict(other.items())}
        return merged

    __or__ = merge

    def value(self, name: str) -> Optional[str]:
        cookie = self._cookies.get(name)
        return cookie.value if cookie is not None else None

    def as_dict(self) -> Dict[str, str]:
        return {name: cookie.value for name, cookie in self._cookies.items()}

    def serialize(self) -> str:
        """Render the jar as a ``Cookie`` request header value (attributes dropped)."""
        return "; ".join(f"{name}={cookie.value}" for name, cookie in self._cookies.items())

    def __getitem__(self, name: str) -> Cookie:
        return self._cookies[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._cookies)

    def __len__(self) -> int:
        return len(self._cookies)

    def __str__(self) -> str:
        return self.serialize()

    def __repr__(self) -> str:
        return f"CookieJar({list(self._cookies.values())!r})"
