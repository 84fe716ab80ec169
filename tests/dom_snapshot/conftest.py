"""Shared fixtures for dom_snapshot tests.

Documents are built from hand-written dumps in the same JSON shape the
browser bridge script returns, so no browser is needed.
"""

from unittest.mock import AsyncMock

import pytest

from src.dom_snapshot.document import DomDocument

DEFAULT_RECT = {"x": 0, "y": 0, "width": 100, "height": 20}


def build_element(
    tag,
    *children,
    attrs=None,
    rect=None,
    display="block",
    visibility="visible",
    offset_parent=True,
    style=None,
):
    """Build an element dump; string children become text nodes."""
    return {
        "tag": tag,
        "attrs": [[name, value] for name, value in (attrs or {}).items()],
        "rect": rect or dict(DEFAULT_RECT),
        "display": display,
        "visibility": visibility,
        "offsetParent": offset_parent,
        "style": [[prop, value] for prop, value in (style or {}).items()],
        "children": [{"text": child} if isinstance(child, str) else child for child in children],
    }


def build_dump(body_children, stylesheets=None, url="https://example.com/", title="Example"):
    """Build a document dump whose body holds ``body_children``."""
    body = build_element(
        "body",
        *body_children,
        rect={"x": 0, "y": 0, "width": 1280, "height": 720},
        offset_parent=False,
    )
    return {
        "url": url,
        "title": title,
        "viewport": {"width": 1280, "height": 720},
        "root": build_element("html", build_element("head"), body, offset_parent=False),
        "stylesheets": stylesheets or [],
    }


@pytest.fixture
def element():
    """Factory for element dumps."""
    return build_element


@pytest.fixture
def make_dump():
    """Factory for document dumps."""
    return build_dump


@pytest.fixture
def page_stylesheets():
    """Stylesheets of the sample page, including one cross-origin sheet."""
    return [
        {
            "href": None,
            "rules": [
                {"selector": ".btn", "declarations": [["color", "blue"], ["padding", "4px"]]},
                {"selector": ".btn:hover", "declarations": [["color", "red"]]},
                {"selector": "button.btn", "declarations": [["color", "green"]]},
                {"selector": "a:focus", "declarations": [["outline", "none"]]},
                {"selector": "p:unknown-thing", "declarations": [["color", "pink"]]},
                {"selector": "header", "declarations": [["background", "white"]]},
            ],
        },
        {"href": "https://cdn.example.com/vendor.css", "rules": None},
    ]


@pytest.fixture
def page_dump(page_stylesheets):
    """A small landing page: header with nav, main content, hidden panel, footer."""
    e = build_element
    return build_dump(
        [
            e(
                "header",
                e("h1", "  Welcome  ", rect={"x": 10.4, "y": 10.5, "width": 300.49, "height": 40}),
                e(
                    "nav",
                    e(
                        "ul",
                        e("li", e("a", "Home", attrs={"href": "/"})),
                        e("li", e("a", "About", attrs={"href": "/about"})),
                    ),
                ),
                attrs={"id": "top", "class": "site-header", "data-v-3f2a": ""},
                rect={"x": 0, "y": 0, "width": 1280, "height": 80},
            ),
            e(
                "main",
                e("p", "Hello ", e("b", "bold"), " world", attrs={"class": "intro", "data-reactid": "7"}),
                e("button", "Buy", attrs={"class": "btn", "type": "button"}, style={"margin": "0"}),
                e("div", "Ad", attrs={"class": "ad"}),
                attrs={"class": "content"},
                rect={"x": 0, "y": 80, "width": 1280, "height": 600},
            ),
            e(
                "div",
                e("p", "Secret"),
                attrs={"class": "hidden-panel"},
                display="none",
                offset_parent=False,
            ),
            e("script"),
            e("footer", "Footer"),
        ],
        stylesheets=page_stylesheets,
        url="https://example.com/landing",
        title="Landing",
    )


@pytest.fixture
def page_document(page_dump):
    """DomDocument built from the sample page."""
    return DomDocument.from_dump(page_dump)


@pytest.fixture
def mock_playwright_page(page_dump):
    """Create a mock Playwright page whose evaluate returns the sample dump."""
    page = AsyncMock()
    page.url = "https://example.com/landing"
    page.evaluate = AsyncMock(return_value=page_dump)
    return page
