"""Unit tests for the content extractor module.

Tests container selection order, stripping of page chrome, the body
fallback, markdown formatting, and the never-raise guarantee.
"""

from __future__ import annotations

from unittest.mock import patch

from deepsearch_crawler.scraper.content_extractor import (
    extract_article_text,
    html_to_markdown,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

_ARTICLE_PAGE = """
<!DOCTYPE html>
<html>
<head><title>Kestrels | Birds</title><style>p { color: red; }</style></head>
<body>
  <header><p>Site header</p></header>
  <nav><a href="/">Home</a></nav>
  <main>
    <p>Teaser outside the article.</p>
    <article>
      <h1>Kestrels hover</h1>
      <p>The kestrel hunts by <strong>hovering</strong> over open ground.</p>
      <ul><li>Small</li><li>Fast</li></ul>
    </article>
  </main>
  <script>trackPageView();</script>
  <footer><p>Copyright notice</p></footer>
</body>
</html>
"""

_NO_CONTAINER_PAGE = """
<html><body>
  <nav>Menu</nav>
  <div><p>Plain body paragraph.</p></div>
</body></html>
"""


# ---------------------------------------------------------------------------
# Container selection
# ---------------------------------------------------------------------------


class TestContainerSelection:
    def test_article_preferred_over_main(self) -> None:
        text = extract_article_text(_ARTICLE_PAGE)
        assert "Kestrels hover" in text
        assert "Teaser outside the article" not in text

    def test_role_main_used_when_no_article(self) -> None:
        html = (
            "<body><main><p>Main text</p></main>"
            '<div role="main"><p>Role main text</p></div></body>'
        )
        assert extract_article_text(html) == "Role main text"

    def test_post_content_class(self) -> None:
        html = '<body><div class="post-content"><p>Post body</p></div><p>Other</p></body>'
        text = extract_article_text(html)
        assert text == "Post body"

    def test_content_class_is_last_resort_selector(self) -> None:
        html = (
            '<body><div class="content"><p>Generic</p></div>'
            '<div class="article-content"><p>Specific</p></div></body>'
        )
        assert extract_article_text(html) == "Specific"

    def test_falls_back_to_body(self) -> None:
        text = extract_article_text(_NO_CONTAINER_PAGE)
        assert "Plain body paragraph." in text
        assert "Menu" not in text

    def test_empty_container_falls_back_to_body(self) -> None:
        html = "<body><article>   </article><p>Body text</p></body>"
        assert extract_article_text(html) == "Body text"


# ---------------------------------------------------------------------------
# Stripping
# ---------------------------------------------------------------------------


class TestStripping:
    def test_chrome_and_scripts_removed(self) -> None:
        text = extract_article_text(_ARTICLE_PAGE)
        for unwanted in ("Site header", "Home", "trackPageView", "Copyright notice", "color: red"):
            assert unwanted not in text

    def test_iframe_and_noscript_removed(self) -> None:
        html = (
            "<body><article><p>Kept</p>"
            "<iframe src='https://ads.example.com'>ad</iframe>"
            "<noscript>Enable JS</noscript></article></body>"
        )
        text = extract_article_text(html)
        assert "Kept" in text
        assert "Enable JS" not in text


# ---------------------------------------------------------------------------
# Markdown formatting
# ---------------------------------------------------------------------------


class TestMarkdown:
    def test_heading_and_list(self) -> None:
        text = extract_article_text(_ARTICLE_PAGE)
        assert "# Kestrels hover" in text
        assert "* Small" in text
        assert "* Fast" in text

    def test_strong_uses_double_asterisk(self) -> None:
        assert "**hovering**" in extract_article_text(_ARTICLE_PAGE)

    def test_emphasis_uses_single_asterisk(self) -> None:
        assert "*quietly*" in html_to_markdown("<p>It waits <em>quietly</em>.</p>")

    def test_links_kept_inline(self) -> None:
        md = html_to_markdown('<p>See <a href="https://example.com/x">this page</a></p>')
        assert "[this page](https://example.com/x)" in md

    def test_pre_becomes_fenced_code_block(self) -> None:
        md = html_to_markdown("<pre><code>x = 1\ny = 2\n</code></pre>")
        assert "```" in md
        assert "x = 1" in md
        assert "y = 2" in md
        assert "[code]" not in md

    def test_result_is_trimmed(self) -> None:
        text = extract_article_text("<body><article>\n\n<p>Hi</p>\n\n</article></body>")
        assert text == text.strip()
        assert text == "Hi"


# ---------------------------------------------------------------------------
# Edge cases
# ---------------------------------------------------------------------------


class TestEdgeCases:
    def test_empty_string_returns_empty(self) -> None:
        assert extract_article_text("") == ""

    def test_empty_body_returns_empty(self) -> None:
        assert extract_article_text("<html><body></body></html>") == ""

    def test_malformed_html_does_not_raise(self) -> None:
        text = extract_article_text("<article><p>Unclosed <b>bold <i>text</article>")
        assert "Unclosed" in text

    def test_converter_failure_returns_empty(self) -> None:
        with patch(
            "deepsearch_crawler.scraper.content_extractor.html_to_markdown",
            side_effect=RuntimeError("boom"),
        ):
            assert extract_article_text(_ARTICLE_PAGE) == ""
