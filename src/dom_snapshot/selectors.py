"""Readable element paths used to key style-only captures.

The generated selector is display metadata: it is stable for an unchanged
document but not guaranteed to be unique, and must not be used to re-query.
"""

from bs4 import Tag

from .document import DomDocument


def _position_among(siblings: list[Tag], element: Tag) -> int:
    # Tags compare equal by content, so locate by identity
    for index, sibling in enumerate(siblings):
        if sibling is element:
            return index + 1
    return 0


def generate_selector(document: DomDocument, element: Tag) -> str:
    """Build a ``" > "``-joined path from the nearest id'd ancestor (or body).

    Args:
        document: Document the element belongs to.
        element: Element to describe.

    Returns:
        ``#id`` for elements with an id, otherwise segments such as
        ``main > ul > li:nth-of-type(2)``.
    """
    element_id = document.record(element).element_id
    if element_id:
        return f"#{element_id}"

    body = document.body
    path: list[str] = []
    current: Tag | None = element

    while current is not None and current is not body:
        current_id = document.record(current).element_id
        if current_id:
            path.insert(0, f"#{current_id}")
            break

        segment = current.name
        parent = document.parent_element(current)
        if parent is not None:
            siblings = [child for child in document.children(parent) if child.name == current.name]
            if len(siblings) > 1:
                segment += f":nth-of-type({_position_among(siblings, current)})"

        path.insert(0, segment)
        current = parent

    return " > ".join(path)
