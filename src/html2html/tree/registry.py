"""Lookup tables for consumer overrides.

A missing key means "no override"; registering ``None`` removes the key.
"""

from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from .builder import TokenConsumer


class ConsumerRegistry:
    """Consumers keyed by token kind and by tag name."""

    def __init__(self) -> None:
        self._by_token_type: Dict[Any, "TokenConsumer"] = {}
        self._by_tag_name: Dict[str, "TokenConsumer"] = {}

    def set_token_type_consumer(
        self, token_type: Any, consumer: Optional["TokenConsumer"]
    ) -> None:
        """Register ``consumer`` for a token kind, or clear it with None."""
        if consumer is None:
            self._by_token_type.pop(token_type, None)
        else:
            self._by_token_type[token_type] = consumer

    def set_tag_name_consumer(
        self, tag_name: str, consumer: Optional["TokenConsumer"]
    ) -> None:
        """Register ``consumer`` for a tag name, or clear it with None."""
        if consumer is None:
            self._by_tag_name.pop(tag_name, None)
        else:
            self._by_tag_name[tag_name] = consumer

    def consumer_by_token_type(self, token_type: Any) -> Optional["TokenConsumer"]:
        return self._by_token_type.get(token_type)

    def consumer_by_tag_name(self, tag_name: str) -> Optional["TokenConsumer"]:
        return self._by_tag_name.get(tag_name)

    @property
    def token_types(self) -> frozenset:
        """Token kinds that currently have an override."""
        return frozenset(self._by_token_type)

    @property
    def tag_names(self) -> frozenset:
        """Tag names that currently have an override."""
        return frozenset(self._by_tag_name)

    def copy(self) -> "ConsumerRegistry":
        """Return an independent registry with the same registrations."""
        clone = ConsumerRegistry()
        clone._by_token_type = dict(self._by_token_type)
        clone._by_tag_name = dict(self._by_tag_name)
        return clone

    def clear(self) -> None:
        """Remove every registration."""
        self._by_token_type.clear()
        self._by_tag_name.clear()

    def __len__(self) -> int:
        return len(self._by_token_type) + len(self._by_tag_name)
