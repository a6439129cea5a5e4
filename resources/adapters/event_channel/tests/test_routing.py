"""Tests for topic routing-key matching."""

from __future__ import annotations

import pytest

from resources.adapters.event_channel.routing import (
    routing_key_matches,
    validate_binding_pattern,
    validate_routing_key,
)


@pytest.mark.parametrize(
    ("pattern", "routing_key", "expected"),
    [
        ("catalog.book.event", "catalog.book.event", True),
        ("catalog.book.event", "catalog.book", False),
        ("catalog.*.event", "catalog.book.event", True),
        ("catalog.*", "catalog.book.event", False),
        ("catalog.#", "catalog", True),
        ("catalog.#", "catalog.book.event", True),
        ("catalog.book.#", "catalog.book.event", True),
        ("catalog.book.#", "catalog.author.event", False),
        ("#", "anything.at.all", True),
        ("#.event", "catalog.book.event", True),
        ("#.event", "catalog.book.deleted", False),
        ("*.#.event", "event", False),
        ("*.#.event", "catalog.event", True),
    ],
)
def test_routing_key_matches_topic_semantics(
    pattern: str, routing_key: str, expected: bool
) -> None:
    assert routing_key_matches(pattern, routing_key) is expected


def test_validate_routing_key_rejects_wildcards_and_empty_words() -> None:
    assert validate_routing_key("catalog.book.event") == "catalog.book.event"
    for bad in ("", "catalog..book", "catalog.*", "catalog.#"):
        with pytest.raises(ValueError):
            validate_routing_key(bad)


def test_validate_binding_pattern_requires_whole_word_wildcards() -> None:
    assert validate_binding_pattern("catalog.book.#") == "catalog.book.#"
    for bad in ("", "catalog.bo*", "catalog..#"):
        with pytest.raises(ValueError):
            validate_binding_pattern(bad)
