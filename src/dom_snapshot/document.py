"""Python-side view of a rendered document.

The browser bridge serializes the live page into a JSON dump: tags,
attributes, text nodes, layout rectangles, computed visibility, inline
styles and the accessible stylesheet rules. ``DomDocument`` rebuilds the
element tree as a BeautifulSoup document so selectors can be evaluated with
soupsieve, and keeps everything the soup cannot hold (geometry, computed
values, attribute order) in a per-element ``ElementRecord``.
"""

from dataclasses import dataclass, field
from typing import Any

import soupsieve as sv
import structlog
from bs4 import BeautifulSoup, NavigableString, Tag

logger = structlog.get_logger(__name__)

# soupsieve raises these for selectors it cannot parse or does not implement
SELECTOR_ERRORS = (sv.SelectorSyntaxError, NotImplementedError, ValueError)


@dataclass
class ElementRecord:
    """Layout and source information for one element of the dump."""

    tag: str
    attributes: list[tuple[str, str]] = field(default_factory=list)
    rect: dict[str, float] = field(default_factory=dict)
    display: str = "block"
    visibility: str = "visible"
    has_offset_parent: bool = True
    inline_style: list[tuple[str, str]] = field(default_factory=list)
    text_nodes: list[str] = field(default_factory=list)

    @property
    def element_id(self) -> str:
        for name, value in self.attributes:
            if name == "id":
                return value
        return ""

    @property
    def direct_text(self) -> str | None:
        """Immediate text-node children, trimmed and space-joined."""
        parts = [text.strip() for text in self.text_nodes]
        return " ".join(part for part in parts if part) or None


@dataclass
class StylesheetDump:
    """One entry of ``document.styleSheets``.

    ``rules`` is None when the browser refused access to ``cssRules``
    (cross-origin sheets).
    """

    href: str | None
    rules: list[dict[str, Any]] | None


def match_selector(element: Tag, selector: str) -> bool | None:
    """Evaluate ``selector`` against ``element``.

    Returns:
        True or False when the selector could be evaluated, None when it could
        not (invalid syntax, unsupported pseudo-classes). Callers treat None as
        not matching.
    """
    try:
        return bool(sv.match(selector, element))
    except SELECTOR_ERRORS as e:
        logger.debug("Selector not evaluable", selector=selector, error=str(e))
        return None


class DomDocument:
    """A rendered document rebuilt from a browser dump."""

    def __init__(
        self,
        root: dict[str, Any],
        stylesheets: list[dict[str, Any]] | None = None,
        url: str = "",
        title: str = "",
        viewport: dict[str, int] | None = None,
    ):
        """Build the document.

        Args:
            root: Element dump of ``document.documentElement``.
            stylesheets: Stylesheet dumps in document order.
            url: Page URL.
            title: Page title.
            viewport: Inner window size {"width": int, "height": int}.
        """
        self.url = url
        self.title = title
        self.viewport = viewport or {"width": 0, "height": 0}
        self.soup = BeautifulSoup("", "html.parser")
        self._records: dict[int, ElementRecord] = {}
        self.root = self._build_element(root, self.soup)
        self.stylesheets = [
            StylesheetDump(href=sheet.get("href"), rules=sheet.get("rules"))
            for sheet in stylesheets or []
        ]
        logger.debug(
            "Document built",
            url=url,
            element_count=len(self._records),
            stylesheet_count=len(self.stylesheets),
        )

    @classmethod
    def from_dump(cls, dump: dict[str, Any]) -> "DomDocument":
        """Create a document from the JSON dump returned by the bridge script."""
        return cls(
            root=dump["root"],
            stylesheets=dump.get("stylesheets"),
            url=dump.get("url", ""),
            title=dump.get("title", ""),
            viewport=dump.get("viewport"),
        )

    def _build_element(self, node: dict[str, Any], parent: Tag) -> Tag:
        attributes = [(name, value) for name, value in node.get("attrs", [])]
        element = self.soup.new_tag(node["tag"].lower(), attrs=dict(attributes))
        parent.append(element)

        record = ElementRecord(
            tag=element.name,
            attributes=attributes,
            rect=node.get("rect") or {"x": 0, "y": 0, "width": 0, "height": 0},
            display=node.get("display", "block"),
            visibility=node.get("visibility", "visible"),
            has_offset_parent=node.get("offsetParent", True),
            inline_style=[(prop, value) for prop, value in node.get("style", [])],
        )
        self._records[id(element)] = record

        for child in node.get("children", []):
            if "tag" in child:
                self._build_element(child, element)
            else:
                text = child.get("text", "")
                record.text_nodes.append(text)
                element.append(NavigableString(text))

        return element

    @property
    def meta(self) -> dict[str, Any]:
        return {"url": self.url, "title": self.title, "viewport": dict(self.viewport)}

    @property
    def body(self) -> Tag | None:
        return self.soup.find("body")

    @property
    def element_count(self) -> int:
        return len(self._records)

    def record(self, element: Tag) -> ElementRecord:
        """Layout record of an element belonging to this document."""
        return self._records[id(element)]

    def query_selector(self, selector: str) -> Tag | None:
        """First element matching ``selector`` in document order.

        Raises:
            soupsieve.SelectorSyntaxError: If the selector is invalid.
        """
        return sv.select_one(selector, self.soup)

    def query_all(self, selector: str) -> list[Tag]:
        """All elements matching ``selector`` in document order."""
        return sv.select(selector, self.soup)

    def children(self, element: Tag) -> list[Tag]:
        """Element children in document order (text nodes excluded)."""
        return [child for child in element.children if isinstance(child, Tag)]

    def parent_element(self, element: Tag) -> Tag | None:
        parent = element.parent
        if parent is None or isinstance(parent, BeautifulSoup):
            return None
        return parent
