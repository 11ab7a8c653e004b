"""Maven version ordering.

A version is parsed into nested item lists the way Maven's
``ComparableVersion`` does: ``.`` separates items of the current list, while
``-`` and a switch between digits and letters open a sub-list. Each list is
then trimmed of trailing zero and release items, so ``1``, ``1.0`` and
``1.0.0-final`` are equal and ``1-alpha`` equals ``1.0-alpha``.

Numeric items compare numerically, qualifiers by their well-known rank::

    alpha < beta < milestone < rc < snapshot < (release) < sp < other

Unknown qualifiers sort after ``sp`` in lexical order. When items of
different kinds meet, a number beats a sub-list, which beats a qualifier.
"""
from __future__ import annotations

import functools
from typing import List, Optional, Tuple, Union

_DIGITS = "0123456789"
_SHORT_ALIASES = {"a": "alpha", "b": "beta", "m": "milestone"}
_ALIASES = {"cr": "rc", "final": "", "ga": "", "release": ""}
_QUALIFIER_RANK = {"alpha": 0, "beta": 1, "milestone": 2, "rc": 3, "snapshot": 4, "": 5, "sp": 6}
_UNKNOWN_RANK = 7
_RELEASE_KEY = (_QUALIFIER_RANK[""], "")

Item = Union[int, str, tuple]


def _qualifier(token: str, followed_by_digit: bool) -> str:
    if followed_by_digit and len(token) == 1:
        token = _SHORT_ALIASES.get(token, token)
    return _ALIASES.get(token, token)


def _item(token: str, digit: bool, followed_by_digit: bool = False):
    return int(token) if digit else _qualifier(token, followed_by_digit)


def _sub_list(current: list, stack: List[list]) -> list:
    child: list = []
    current.append(child)
    stack.append(child)
    return child


def _is_null(item) -> bool:
    if isinstance(item, list):
        return not item
    return item == 0 or item == ""


def _normalize(items: list) -> None:
    """Drop trailing null items; stop at the first non-null, non-list item."""
    for index in range(len(items) - 1, -1, -1):
        item = items[index]
        if _is_null(item):
            del items[index]
        elif not isinstance(item, list):
            break


def _freeze(items: list) -> tuple:
    return tuple(_freeze(i) if isinstance(i, list) else i for i in items)


def _parse(text: str) -> tuple:
    text = text.strip().lower()
    root: list = []
    current = root
    stack = [root]
    is_digit = False
    start = 0

    for index, char in enumerate(text):
        if char in ".-":
            current.append(0 if index == start else _item(text[start:index], is_digit))
            start = index + 1
            if char == "-":
                current = _sub_list(current, stack)
        elif char in _DIGITS:
            if not is_digit and index > start:
                # 1.0.0.X1 < 1.0.0-X2: a qualifier after a dot still opens a sub-list
                if current:
                    current = _sub_list(current, stack)
                current.append(_qualifier(text[start:index], True))
                start = index
                current = _sub_list(current, stack)
            is_digit = True
        else:
            if is_digit and index > start:
                current.append(int(text[start:index]))
                start = index
                current = _sub_list(current, stack)
            is_digit = False

    if len(text) > start:
        current.append(_item(text[start:], is_digit))

    # innermost lists first, so emptied sub-lists are dropped by their parent
    while stack:
        _normalize(stack.pop())
    return _freeze(root)


def _qualifier_key(item: str) -> Tuple[int, str]:
    rank = _QUALIFIER_RANK.get(item, _UNKNOWN_RANK)
    return rank, item if rank == _UNKNOWN_RANK else ""


def _sign(left, right) -> int:
    return (left > right) - (left < right)


def _compare(left: Optional[Item], right: Optional[Item]) -> int:
    """Compare two items; ``None`` stands for a missing item."""
    if left is None:
        return 0 if right is None else -_compare(right, None)

    if isinstance(left, int):
        if right is None:
            return 1 if left else 0
        if isinstance(right, int):
            return _sign(left, right)
        return 1

    if isinstance(left, str):
        if right is None:
            return _sign(_qualifier_key(left), _RELEASE_KEY)
        if isinstance(right, str):
            return _sign(_qualifier_key(left), _qualifier_key(right))
        return -1

    if right is None:
        return _compare(left[0], None) if left else 0
    if isinstance(right, int):
        return -1
    if isinstance(right, str):
        return 1
    for index in range(max(len(left), len(right))):
        result = _compare(left[index] if index < len(left) else None,
                          right[index] if index < len(right) else None)
        if result:
            return result
    return 0


@functools.total_ordering
class MavenVersion:
    """A comparable Maven version; ``str()`` returns the original text."""

    __slots__ = ("text", "_items")

    def __init__(self, text: str):
        if text is None or not str(text).strip():
            raise ValueError("Version text must be non-empty")
        self.text = str(text).strip()
        self._items = _parse(self.text)

    @property
    def is_snapshot(self) -> bool:
        return "snapshot" in self.text.lower()

    def __eq__(self, other) -> bool:
        if isinstance(other, str):
            other = MavenVersion(other)
        if not isinstance(other, MavenVersion):
            return NotImplemented
        return _compare(self._items, other._items) == 0

    def __lt__(self, other) -> bool:
        if isinstance(other, str):
            other = MavenVersion(other)
        if not isinstance(other, MavenVersion):
            return NotImplemented
        return _compare(self._items, other._items) < 0

    def __hash__(self) -> int:
        return hash(self._items)

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"MavenVersion({self.text!r})"
