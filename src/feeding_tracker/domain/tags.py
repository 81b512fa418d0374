"""Distinct tag collection used by drafts and updates."""

from collections.abc import Iterable, Iterator

from feeding_tracker.domain.feedings import FeedingTag, parse_tag


class TagSet:
    """Set of feeding tags that keeps first-insertion order.

    Labels outside the ``FeedingTag`` vocabulary are rejected with a
    ``FeedingValidationError``; adding a label twice is a no-op.
    """

    def __init__(self, tags: Iterable[FeedingTag | str] = ()) -> None:
        self._tags: dict[FeedingTag, None] = {}
        for tag in tags:
            self.add(tag)

    def add(self, tag: FeedingTag | str) -> None:
        """Add a tag if it is not already present."""
        self._tags.setdefault(parse_tag(tag), None)

    def remove(self, tag: FeedingTag | str) -> None:
        """Remove a tag if present."""
        self._tags.pop(parse_tag(tag), None)

    def clear(self) -> None:
        """Remove every tag."""
        self._tags.clear()

    def to_list(self) -> list[FeedingTag]:
        """Return tags in insertion order."""
        return list(self._tags)

    def __contains__(self, tag: object) -> bool:
        return tag in self._tags

    def __iter__(self) -> Iterator[FeedingTag]:
        return iter(self._tags)

    def __len__(self) -> int:
        return len(self._tags)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, TagSet):
            return set(self._tags) == set(other._tags)
        if isinstance(other, set | frozenset):
            return set(self._tags) == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"TagSet({[tag.value for tag in self._tags]!r})"
