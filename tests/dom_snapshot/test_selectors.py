"""Tests for dom_snapshot/selectors.py."""

from src.dom_snapshot.document import DomDocument
from src.dom_snapshot.selectors import generate_selector


class TestGenerateSelector:
    """Tests for readable element paths."""

    def test_element_with_id(self, page_document):
        """Test an id short-circuits the path."""
        header = page_document.query_selector("header")
        assert generate_selector(page_document, header) == "#top"

    def test_path_stops_at_id_ancestor(self, page_document):
        """Test ascent stops at the nearest ancestor with an id."""
        about = page_document.query_all("a")[1]
        assert generate_selector(page_document, about) == "#top > nav > ul > li:nth-of-type(2) > a"

    def test_first_of_several_siblings(self, page_document):
        home = page_document.query_all("li")[0]
        assert generate_selector(page_document, home) == "#top > nav > ul > li:nth-of-type(1)"

    def test_path_stops_below_body(self, page_document):
        """Test paths without an id ancestor start below the body."""
        button = page_document.query_selector("button")
        assert generate_selector(page_document, button) == "main > button"

    def test_same_content_siblings(self, element, make_dump):
        """Test identical siblings get distinct positions."""
        document = DomDocument.from_dump(
            make_dump([element("section", element("p", "Same"), element("p", "Same"))])
        )
        second = document.query_all("p")[1]
        assert generate_selector(document, second) == "section > p:nth-of-type(2)"

    def test_only_same_tag_siblings_counted(self, element, make_dump):
        """Test other tags do not count towards nth-of-type."""
        document = DomDocument.from_dump(
            make_dump([element("section", element("h2"), element("p"), element("span"))])
        )
        assert generate_selector(document, document.query_selector("p")) == "section > p"
