"""Tests for DOM/CSS heuristics."""

from bs4 import BeautifulSoup

from storefront_audit.analysis.dom_heuristics import (
    alt_ratio,
    analyze_html,
    count_popups,
    detect_analytics,
    has_horizontal_overflow,
    min_font_size,
    min_touch_target,
)


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


class TestAnalyzeHtml:
    """Tests for analyze_html over a complete page."""

    def test_sample_storefront(self, storefront_html):
        dom = analyze_html(storefront_html)

        assert dom.viewport_meta is True
        assert dom.title is True
        assert dom.description is True
        assert dom.og_count == 3
        assert dom.h1_count == 1
        assert dom.canonical is True
        assert dom.alt_ratio == 1.0
        assert dom.image_count == 2
        assert dom.analytics == ["googletagmanager.com"]
        assert dom.menu_items == ["Best", "New", "Outer", "Top"]
        assert dom.menu_count == 4
        assert dom.search_present is True
        assert dom.search_selector == 'input[type="search"]'
        assert dom.has_best_new is True
        assert dom.overflow is False
        assert dom.popups == 0

    def test_bare_page_defaults(self):
        dom = analyze_html("<html><body><p>hello</p></body></html>")

        assert dom.viewport_meta is False
        assert dom.title is False
        assert dom.alt_ratio == 1.0
        assert dom.min_font_px == 16.0
        assert dom.min_touch_px == 44.0
        assert dom.search_present is False
        assert dom.analytics == []


class TestHeuristics:
    """Tests for individual heuristics."""

    def test_alt_ratio_ignores_blank_alt(self):
        count, ratio = alt_ratio(_soup('<img src="a" alt="x"><img src="b" alt=" "><img src="c">'))

        assert count == 3
        assert ratio == 1 / 3

    def test_count_popups(self):
        html = """
        <div role="dialog"></div>
        <div class="event-popup"></div>
        <div id="modal-1"></div>
        <div style="position: fixed; z-index: 999"></div>
        <div style="position: fixed; z-index: 10"></div>
        """

        assert count_popups(_soup(html)) == 4

    def test_horizontal_overflow(self):
        assert has_horizontal_overflow(_soup('<div style="width: 1200px"></div>')) is True
        assert has_horizontal_overflow(_soup('<div style="max-width: 1200px; width: 300px"></div>')) is False

    def test_min_font_size_units(self):
        html = '<p style="font-size: 0.75rem">a</p><span style="font-size: 13px">b</span><div style="font-size: 4px">c</div>'

        assert min_font_size(_soup(html)) == 12.0

    def test_min_touch_target_ignores_icons(self):
        html = '<button style="height: 32px">Buy</button><a style="width: 12px">x</a>'

        assert min_touch_target(_soup(html)) == 32.0

    def test_detect_analytics(self):
        html = "<script>gtag('config');</script><script src='https://wcs.naver.net/wcslog.js'></script>"

        assert detect_analytics(html) == ["gtag", "wcs.naver.net"]
