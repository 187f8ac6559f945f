"""Tests for content fingerprints."""

from text_search.hashing import fingerprint


def test_known_fingerprint():
    assert fingerprint("hello world") == "XrY7u-Ae7tCTyyK7j1rNww"


def test_fingerprint_is_url_safe_without_padding():
    for text in ["", "a", "hello world", "unicode: é ü 日本", "x" * 10000]:
        value = fingerprint(text)
        assert len(value) == 22
        assert "=" not in value
        assert "+" not in value and "/" not in value


def test_no_normalization():
    assert fingerprint("hello world") != fingerprint("hello world ")
    assert fingerprint("hello world") != fingerprint("Hello world")
