"""Tests for Set-Cookie parsing and the cookie jar.

Tests cover:
- Set-Cookie parsing (attributes, flags, case folding)
- Jar ordering, last-write-wins, and right-biased merge
- Cookie header serialization
"""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from HopHTTP.cookies import Cookie, CookieJar, parse_set_cookie

_names = st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789_", min_size=1, max_size=8)
_values = st.text(alphabet="abcdefghijklmnopqrstuvwxyzABCDEF0123456789-._", max_size=12)
_jars = st.dictionaries(_names, _values, max_size=6).map(CookieJar.from_mapping)


class TestParseSetCookie:
    def test_name_value_and_attributes(self):
        cookie = parse_set_cookie("session=abc123; Path=/; Domain=example.org; Secure; HttpOnly")
        assert cookie.name == "session"
        assert cookie.value == "abc123"
        assert cookie.attribute("path") == "/"
        assert cookie.attribute("DOMAIN") == "example.org"
        assert cookie.has_attribute("secure")
        assert cookie.attribute("secure") is None
        assert cookie.has_attribute("HttpOnly")

    def test_attribute_keys_are_case_folded(self):
        cookie = parse_set_cookie("a=b; Max-Age=60; SameSite=Lax")
        assert set(cookie.attributes) == {"max-age", "samesite"}

    def test_unknown_attributes_are_kept(self):
        cookie = parse_set_cookie("a=b; X-Custom=yes")
        assert cookie.attribute("x-custom") == "yes"

    def test_value_may_contain_equals(self):
        cookie = parse_set_cookie("token=abc==; Path=/")
        assert cookie.value == "abc=="

    def test_empty_value(self):
        cookie = parse_set_cookie("cleared=; Expires=Thu, 01 Jan 1970 00:00:00 GMT")
        assert cookie.value == ""
        assert cookie.attribute("expires") == "Thu, 01 Jan 1970 00:00:00 GMT"

    def test_missing_name_is_rejected(self):
        with pytest.raises(ValueError):
            parse_set_cookie("=value; Path=/")

    def test_str_renders_attributes(self):
        assert str(parse_set_cookie("a=1; Path=/; Secure")) == "a=1; path=/; secure"

    def test_cookie_attributes_are_read_only(self):
        cookie = Cookie("a", "1", {"Path": "/"})
        with pytest.raises(TypeError):
            cookie.attributes["path"] = "/other"  # type: ignore[index]


class TestCookieJar:
    def test_last_write_wins_and_keeps_position(self):
        jar = CookieJar([Cookie("a", "1"), Cookie("b", "2"), Cookie("a", "3")])
        assert list(jar) == ["a", "b"]
        assert jar.value("a") == "3"

    def test_get_returns_cookie_or_none(self):
        jar = CookieJar.from_mapping({"a": "1"})
        assert jar.get("a") == Cookie("a", "1")
        assert jar.get("missing") is None
        assert jar.value("missing") is None

    def test_serialize_drops_attributes(self):
        jar = CookieJar.from_set_cookie_headers(["a=1; Path=/", "b=2; HttpOnly"])
        assert jar.serialize() == "a=1; b=2"
        assert str(jar) == "a=1; b=2"

    def test_empty_jar_serializes_to_empty_string(self):
        assert CookieJar().serialize() == ""
        assert not CookieJar()

    def test_merge_is_right_biased_and_ordered(self):
        left = CookieJar.from_mapping({"a": "1", "b": "2"})
        right = CookieJar.from_mapping({"c": "3", "a": "9"})
        merged = left.merge(right)
        assert list(merged) == ["a", "b", "c"]
        assert merged.as_dict() == {"a": "9", "b": "2", "c": "3"}

    def test_merge_returns_new_jar(self):
        left = CookieJar.from_mapping({"a": "1"})
        merged = left | CookieJar.from_mapping({"b": "2"})
        assert merged is not left
        assert list(left) == ["a"]

    def test_from_mapping_handles_none(self):
        assert len(CookieJar.from_mapping(None)) == 0

    def test_repr_lists_cookies(self):
        assert "Cookie(name='a'" in repr(CookieJar.from_mapping({"a": "1"}))


class TestCookieJarProperties:
    @given(left=_jars, right=_jars)
    @settings(max_examples=100)
    def test_merge_right_biased_on_collisions(self, left: CookieJar, right: CookieJar):
        merged = left.merge(right)
        for name in right:
            assert merged.get(name) == right.get(name)
        for name in set(left) - set(right):
            assert merged.get(name) == left.get(name)
        assert len(merged) == len(set(left) | set(right))

    @given(jar=_jars)
    def test_empty_jar_is_identity(self, jar: CookieJar):
        assert CookieJar().merge(jar).as_dict() == jar.as_dict()
        assert jar.merge(CookieJar()).as_dict() == jar.as_dict()
        assert list(jar.merge(CookieJar())) == list(jar)

    @given(left=_jars, right=_jars)
    def test_merge_commutes_on_disjoint_names(self, left: CookieJar, right: CookieJar):
        right = CookieJar(right[name] for name in right if name not in left)
        assert left.merge(right).as_dict() == right.merge(left).as_dict()

    @given(name=_names, value=_values, path=_values)
    def test_parse_then_serialize_keeps_name_and_value(self, name: str, value: str, path: str):
        cookie = parse_set_cookie(f"{name}={value}; Path=/{path}; Secure")
        assert CookieJar([cookie]).serialize() == f"{name}={value}"
