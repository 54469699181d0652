import pytest

from bizportal.errors import SourceNotFoundError
from bizportal.ingest.parser import HtmlParser, html_to_text

_PAGE = (
    "<!DOCTYPE html><html><head><script>var tracking = 1;</script>"
    "<style>p { color: red; }</style><meta name='x' content='Hidden meta'></head>"
    "<body><nav>Menu</nav><header>Top banner</header>"
    "<h1>Serenity Spa</h1><p>Relax with us.</p>"
    "<ul><li>Massage</li><li>Facial</li></ul>"
    "<footer>Copyright notice</footer></body></html>"
)


def test_html_to_text_drops_non_content_elements() -> None:
    text = html_to_text(_PAGE)

    for hidden in ("tracking", "color", "Hidden meta", "Menu", "Top banner", "Copyright", "DOCTYPE"):
        assert hidden not in text
    assert "Serenity Spa" in text
    assert "Relax with us." in text


def test_block_elements_become_paragraph_breaks() -> None:
    text = html_to_text(_PAGE)

    assert text.split("\n\n") == ["Serenity Spa", "Relax with us.", "Massage", "Facial"]
    assert "\n\n\n" not in text


def test_whitespace_and_nbsp_are_normalized() -> None:
    text = html_to_text("<p>Open&nbsp;daily    from   nine</p>")

    assert text == "Open daily from nine"


def test_parse_path_reads_file(tmp_path) -> None:
    page = tmp_path / "site.html"
    page.write_text("<p>Free parking for guests.</p>", encoding="utf-8")

    parsed = HtmlParser().parse_path(page, doc_id="tenant-1")

    assert parsed.doc_id == "tenant-1"
    assert parsed.text == "Free parking for guests."
    assert parsed.source == str(page)


def test_parse_path_missing_file_raises(tmp_path) -> None:
    with pytest.raises(SourceNotFoundError):
        HtmlParser().parse_path(tmp_path / "missing.html", doc_id="tenant-1")
