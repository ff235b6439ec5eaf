import pytest

from services.static_generator import StaticGenerator


@pytest.mark.asyncio
async def test_generate_site_writes_pages_sitemap_and_robots(store, tmp_path):
    generator = StaticGenerator(tmp_path / "public", store)

    assert await generator.generate_site() == ["about", "home"]

    public = tmp_path / "public"
    assert (public / "index.html").exists()
    assert (public / "about.html").exists()
    sitemap = (public / "sitemap.xml").read_text(encoding="utf-8")
    assert "<loc>https://harborbakery.com/</loc>" in sitemap
    assert "<loc>https://harborbakery.com/about.html</loc>" in sitemap
    robots = (public / "robots.txt").read_text(encoding="utf-8")
    assert "Sitemap: https://harborbakery.com/sitemap.xml" in robots


def test_render_page_includes_seo_and_structured_data(site_config, page_factory):
    generator = StaticGenerator("unused", None)
    page = page_factory("about", "About")
    page["featuredImage"] = "https://harborbakery.com/hero.jpg"

    html = generator.render_page(page, site_config)

    assert "<title>About | Harbor Bakery</title>" in html
    assert '<meta name="description" content="Harbor Bakery home page">' in html
    assert '<link rel="canonical" href="https://harborbakery.com/about.html">' in html
    assert '<meta property="og:image" content="https://harborbakery.com/hero.jpg">' in html
    assert '"@type": "LocalBusiness"' in html
    assert '<a href="/privacy.html">Privacy Policy</a>' in html
    assert "/terms.html" not in html
    # navigation follows the configured order, not list order
    assert html.index('href="/">Home') < html.index('href="/about.html">About')


def test_user_text_is_escaped(site_config, page_factory):
    generator = StaticGenerator("unused", None)
    page = page_factory()
    page["sections"][0]["content"]["headline"] = "<script>alert(1)</script>"

    html = generator.render_page(page, site_config)

    assert "<script>alert(1)</script>" not in html
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html


def test_description_falls_back_to_section_text():
    sections = [
        {"type": "image", "content": {"imageId": "x"}},
        {"type": "text", "content": {"body": "<p>" + "word " * 50 + "</p>"}},
    ]
    description = StaticGenerator.extract_description(sections)
    assert description.endswith("...")
    assert "<p>" not in description
    assert len(description) <= 163
