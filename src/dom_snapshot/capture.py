"""DOM snapshot capture.

Captures a deterministic, serializable representation of a DOM subtree:
structure, filtered attributes, rounded geometry, direct text, applied
styles and statically resolved pseudo-state styles.

This module provides:
- The JavaScript that dumps a live document for the Python side
- TreeCapturer, the depth-first pre-order walk producing SnapshotNode trees
- CaptureSession, one capture pass with its lazily built rule cache
- Bridges that obtain a document dump and run a capture method over it
"""

import inspect
import math
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from bs4 import Tag

from .document import DomDocument
from .filters import should_ignore
from .models import CaptureOptions, SnapshotNode, StyleEntry
from .selectors import generate_selector
from .styles import RuleCache, StyleResolver, build_rule_cache

if TYPE_CHECKING:
    from playwright.async_api import Page as AsyncPage
    from playwright.sync_api import Page as SyncPage

logger = structlog.get_logger(__name__)


# JavaScript serializing the live document into the dump DomDocument reads.
# Only top-level CSSStyleRules are dumped; sheets whose cssRules throw
# (cross-origin) are recorded with rules: null.
DOCUMENT_DUMP_JS = """
() => {
    const readDeclarations = (style) => {
        const declarations = [];
        for (let i = 0; i < style.length; i++) {
            declarations.push([style[i], style.getPropertyValue(style[i])]);
        }
        return declarations;
    };

    const serializeElement = (el) => {
        const rect = el.getBoundingClientRect();
        const computed = window.getComputedStyle(el);
        const node = {
            tag: el.tagName.toLowerCase(),
            attrs: Array.from(el.attributes).map(attr => [attr.name, attr.value]),
            rect: { x: rect.x, y: rect.y, width: rect.width, height: rect.height },
            display: computed.display,
            visibility: computed.visibility,
            offsetParent: el.offsetParent !== null,
            style: el.style ? readDeclarations(el.style) : [],
            children: []
        };

        // Skip script/style contents
        const skipText = el.tagName === 'SCRIPT' || el.tagName === 'STYLE';
        for (const child of el.childNodes) {
            if (child.nodeType === Node.ELEMENT_NODE) {
                node.children.push(serializeElement(child));
            } else if (child.nodeType === Node.TEXT_NODE && !skipText) {
                node.children.push({ text: child.textContent });
            }
        }
        return node;
    };

    const stylesheets = [];
    for (const sheet of document.styleSheets) {
        let rules;
        try {
            rules = sheet.cssRules;
        } catch (e) {
            stylesheets.push({ href: sheet.href, rules: null });
            continue;
        }
        const entry = { href: sheet.href, rules: [] };
        for (const rule of (rules || [])) {
            if (!(rule instanceof CSSStyleRule)) continue;
            entry.rules.push({ selector: rule.selectorText, declarations: readDeclarations(rule.style) });
        }
        stylesheets.push(entry);
    }

    return {
        url: window.location.href,
        title: document.title,
        viewport: { width: window.innerWidth, height: window.innerHeight },
        root: serializeElement(document.documentElement),
        stylesheets
    };
}
"""

CAPTURE_METHODS = ("get_dom", "get_styles", "capture")


def js_round(value: float) -> int:
    """Round half up, like JavaScript's Math.round."""
    return int(math.floor(value + 0.5))


class TreeCapturer:
    """Walks a DOM subtree depth-first, pre-order, in document order.

    Filtered elements are omitted together with their subtree rather than
    left as placeholders, and a node whose children were all filtered carries
    no ``children`` field at all.

    Attributes:
        document: Document being captured
        options: Capture options for this pass
        style_resolver: When set, applied and pseudo-state styles are captured
    """

    def __init__(
        self,
        document: DomDocument,
        options: CaptureOptions,
        style_resolver: Optional[StyleResolver] = None,
    ):
        self.document = document
        self.options = options
        self.style_resolver = style_resolver

    def capture_tree(self, root: Optional[Tag]) -> Optional[SnapshotNode]:
        """Capture the subtree rooted at ``root``.

        Args:
            root: Root element, or None when the root query matched nothing

        Returns:
            SnapshotNode tree, or None when there is no root or the root itself
            is filtered out
        """
        if root is None:
            return None
        return self._capture_node(root, 0)

    def _capture_node(self, element: Tag, depth: int) -> Optional[SnapshotNode]:
        if self.options.depth is not None and depth > self.options.depth:
            return None
        if should_ignore(self.document, element, self.options):
            return None

        record = self.document.record(element)
        node = SnapshotNode(tag=element.name.lower(), attrs=self._get_attributes(element))

        if self.options.include_box:
            rect = record.rect
            node.box = {
                "x": js_round(rect.get("x", 0)),
                "y": js_round(rect.get("y", 0)),
                "w": js_round(rect.get("width", 0)),
                "h": js_round(rect.get("height", 0)),
            }

        if self.options.include_text:
            node.text = record.direct_text

        if self.style_resolver is not None:
            node.styles = self.style_resolver.get_applied_styles(element)
            if self.options.include_pseudo:
                node.pseudo = self.style_resolver.get_pseudo_styles(element) or None

        for child in self.document.children(element):
            captured = self._capture_node(child, depth + 1)
            if captured is not None:
                node.children.append(captured)

        return node

    def _get_attributes(self, element: Tag) -> Dict[str, str]:
        attrs = {}
        for name, value in self.document.record(element).attributes:
            if not any(name.startswith(prefix) for prefix in self.options.ignore_attrs):
                attrs[name] = value
        return attrs


class CaptureSession:
    """One capture pass over one document.

    The rule cache is built on the first style-dependent call and reused for
    the rest of the session. A session must not outlive its document: a new
    navigation or a new dump needs a new session.
    """

    def __init__(self, document: DomDocument, options: Optional[CaptureOptions] = None):
        self.document = document
        self.options = options or CaptureOptions()
        self._rule_cache: Optional[RuleCache] = None
        self._style_resolver: Optional[StyleResolver] = None
        self.log = logger.bind(component="capture_session")

    @property
    def rule_cache(self) -> RuleCache:
        if self._rule_cache is None:
            self._rule_cache = build_rule_cache(self.document, self.options.pseudo_states)
        return self._rule_cache

    @property
    def style_resolver(self) -> StyleResolver:
        if self._style_resolver is None:
            self._style_resolver = StyleResolver(self.document, self.rule_cache, self.options.pseudo_states)
        return self._style_resolver

    def get_dom(self, selector: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Capture structure, attributes, geometry and text (no styles)."""
        root = self.document.query_selector(selector or self.options.root)
        node = TreeCapturer(self.document, self.options).capture_tree(root)
        return node.to_dict() if node is not None else None

    def capture(self, selector: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Capture the full tree including applied and pseudo-state styles."""
        root = self.document.query_selector(selector or self.options.root)
        if root is None:
            return None
        node = TreeCapturer(self.document, self.options, self.style_resolver).capture_tree(root)
        return node.to_dict() if node is not None else None

    def get_styles(self, selector: Optional[str] = None) -> List[Dict[str, Any]]:
        """Capture a flat list of applied styles for every kept element.

        For ``body`` the body's descendants are listed; for any other selector
        the matched elements and their descendants are. Depth is not applied.
        """
        elements = self._query_elements(selector or self.options.root)
        resolver = self.style_resolver
        entries = [
            StyleEntry(
                selector=generate_selector(self.document, element),
                styles=resolver.get_applied_styles(element),
                pseudo=resolver.get_pseudo_styles(element) if self.options.include_pseudo else {},
            )
            for element in elements
        ]
        self.log.debug("Styles captured", selector=selector, entry_count=len(entries))
        return [entry.to_dict() for entry in entries]

    def _query_elements(self, selector: str) -> List[Tag]:
        query = "body *" if selector == "body" else f"{selector}, {selector} *"
        return [
            element
            for element in self.document.query_all(query)
            if not should_ignore(self.document, element, self.options)
        ]

    def run(self, method: str, selector: Optional[str] = None) -> Any:
        """Run a capture method by name."""
        if method not in CAPTURE_METHODS:
            raise ValueError(f"Unknown capture method: {method}")
        return getattr(self, method)(selector)


def run_capture(
    dump: Dict[str, Any],
    selector: str,
    options: CaptureOptions,
    method: str,
) -> Dict[str, Any]:
    """Build a document from a dump and run one capture method over it.

    Returns:
        {"data": payload, "meta": {"url", "title", "viewport"}}
    """
    document = DomDocument.from_dump(dump)
    session = CaptureSession(document, options)
    return {"data": session.run(method, selector), "meta": document.meta}


class CaptureBridge(ABC):
    """Obtains a document and runs a capture method over it."""

    @abstractmethod
    async def evaluate(
        self,
        selector: str,
        options: CaptureOptions,
        method: str,
    ) -> Dict[str, Any]:
        """Run ``method`` for ``selector`` and return {"data", "meta"}."""


class PlaywrightBridge(CaptureBridge):
    """Captures from a live Playwright page.

    Accepts an async page or a sync one (pytest-playwright's ``page``
    fixture). A sync page is evaluated inline on the calling thread.
    Failures of the page call are not caught; timeouts belong to the page.
    """

    def __init__(self, page: "AsyncPage | SyncPage"):
        self.page = page
        self.log = logger.bind(component="playwright_bridge")

    async def dump_document(self) -> Dict[str, Any]:
        """Serialize the page's current document."""
        dump = self.page.evaluate(DOCUMENT_DUMP_JS)
        if inspect.isawaitable(dump):
            dump = await dump
        return dump

    async def evaluate(
        self,
        selector: str,
        options: CaptureOptions,
        method: str,
    ) -> Dict[str, Any]:
        dump = await self.dump_document()
        result = run_capture(dump, selector, options, method)
        self.log.debug("Capture evaluated", url=result["meta"]["url"], selector=selector, method=method)
        return result


class StaticBridge(CaptureBridge):
    """Captures from an already obtained document dump.

    ``dump`` is read on every call, so it can be replaced between captures.
    """

    def __init__(self, dump: Dict[str, Any]):
        self.dump = dump

    async def evaluate(
        self,
        selector: str,
        options: CaptureOptions,
        method: str,
    ) -> Dict[str, Any]:
        return run_capture(self.dump, selector, options, method)
