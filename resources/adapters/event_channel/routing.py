"""Topic routing-key matching.

Keys and patterns are ``.``-separated words. In a pattern, ``*`` stands for
exactly one word and ``#`` for zero or more words, so ``catalog.#`` matches
``catalog``, ``catalog.book`` and ``catalog.book.event``.
"""

from __future__ import annotations

_WILDCARDS = frozenset({"*", "#"})


def split_words(value: str) -> list[str]:
    """Split a key or pattern into words; the empty string has no words."""
    return value.split(".") if value else []


def validate_routing_key(routing_key: str) -> str:
    """Reject empty words and wildcard characters in a concrete routing key."""
    words = split_words(routing_key)
    if not words:
        raise ValueError("routing key must not be empty")
    for word in words:
        if word == "" or _WILDCARDS.intersection(word):
            raise ValueError(f"invalid routing key: {routing_key!r}")
    return routing_key


def validate_binding_pattern(pattern: str) -> str:
    """Reject empty words and wildcards embedded inside a word."""
    words = split_words(pattern)
    if not words:
        raise ValueError("binding pattern must not be empty")
    for word in words:
        if word == "":
            raise ValueError(f"binding pattern has an empty word: {pattern!r}")
        if word not in _WILDCARDS and _WILDCARDS.intersection(word):
            raise ValueError(
                f"wildcards must occupy a whole word in binding pattern: {pattern!r}"
            )
    return pattern


def routing_key_matches(pattern: str, routing_key: str) -> bool:
    """Return ``True`` when ``routing_key`` is selected by ``pattern``."""
    key_words = split_words(routing_key)
    # Positions in key_words reachable after consuming each pattern word.
    positions = {0}
    for word in split_words(pattern):
        advanced: set[int] = set()
        for position in positions:
            if word == "#":
                advanced.update(range(position, len(key_words) + 1))
            elif position < len(key_words) and word in ("*", key_words[position]):
                advanced.add(position + 1)
        if not advanced:
            return False
        positions = advanced
    return len(key_words) in positions
