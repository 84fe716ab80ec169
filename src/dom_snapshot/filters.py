"""Element filter policy applied at every node of a capture."""

from functools import lru_cache

from bs4 import Tag

from .document import DomDocument, match_selector
from .models import CaptureOptions

HIDDEN_DISPLAY = "none"
HIDDEN_VISIBILITY = "hidden"


@lru_cache(maxsize=32)
def _ignored_tags(tags: tuple[str, ...]) -> frozenset[str]:
    return frozenset(tag.lower() for tag in tags)


def is_hidden(document: DomDocument, element: Tag) -> bool:
    """Whether an element is out of layout and hidden by its computed style.

    The body is the root container and never counts as hidden, since it has
    no offset parent by definition.
    """
    record = document.record(element)
    if record.has_offset_parent or element.name == "body":
        return False
    return record.display == HIDDEN_DISPLAY or record.visibility == HIDDEN_VISIBILITY


def should_ignore(document: DomDocument, element: Tag, options: CaptureOptions) -> bool:
    """Decide whether an element (and with it its subtree) is excluded.

    An element is ignored when its tag is in ``ignore_tags`` (case-insensitive),
    when ``ignore_hidden`` is set and the element is hidden, or when it matches
    one of ``ignore_selectors``. Selectors that cannot be evaluated never match.
    """
    if element.name.lower() in _ignored_tags(options.ignore_tags):
        return True

    if options.ignore_hidden and is_hidden(document, element):
        return True

    for selector in options.ignore_selectors:
        if match_selector(element, selector):
            return True

    return False
