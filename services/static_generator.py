"""Render site and page configuration into static HTML.

Each page is written to ``<public_dir>/<page_id>.html`` (the ``home`` page
becomes ``index.html``) together with ``sitemap.xml`` and ``robots.txt``.
"""

from __future__ import annotations

import asyncio
import html
import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from dal.config_store import ConfigStore

LOGGER = logging.getLogger(__name__)

TAG_RE = re.compile(r"<[^>]*>")

STYLE_TEMPLATE = """
    * {{ margin: 0; padding: 0; box-sizing: border-box; }}
    body {{ font-family: {font}; line-height: 1.6; color: #333; }}
    nav {{ background: {primary}; padding: 1rem 2rem; display: flex; justify-content: space-between; align-items: center; }}
    nav .logo {{ color: white; font-size: 1.5rem; font-weight: bold; text-decoration: none; }}
    nav ul {{ list-style: none; display: flex; gap: 2rem; }}
    nav a {{ color: white; text-decoration: none; }}
    main {{ max-width: 1200px; margin: 0 auto; padding: 2rem; }}
    .section {{ margin-bottom: 3rem; }}
    .hero {{ text-align: center; padding: 4rem 2rem; background: {secondary}; color: white; border-radius: 8px; }}
    .hero h1 {{ font-size: 3rem; margin-bottom: 1rem; }}
    .cta-button {{ display: inline-block; margin-top: 1rem; padding: 0.75rem 2rem; background: {primary}; color: white; text-decoration: none; border-radius: 4px; }}
    .text-section h2 {{ font-size: 2rem; margin-bottom: 1rem; color: {primary}; }}
    .image-section {{ text-align: center; }}
    .image-section img {{ max-width: 100%; height: auto; border-radius: 8px; }}
    footer {{ background: #f5f5f5; padding: 2rem; text-align: center; margin-top: 4rem; }}
    @media (max-width: 768px) {{ nav ul {{ flex-direction: column; gap: 1rem; }} .hero h1 {{ font-size: 2rem; }} }}
"""


def _esc(value: Any) -> str:
    return html.escape(str(value or ""), quote=True)


def page_filename(page_id: str) -> str:
    return "index.html" if page_id == "home" else f"{page_id}.html"


def page_url(site: Dict[str, Any], page_id: str) -> str:
    return f"https://{site['domain']}/" + ("" if page_id == "home" else f"{page_id}.html")


class StaticGenerator:
    """Write the public site from the canonical configuration."""

    def __init__(self, public_dir: Path | str, config_store: ConfigStore) -> None:
        self.public_dir = Path(public_dir)
        self.config_store = config_store

    async def generate_site(self) -> List[str]:
        """Render every page plus sitemap.xml and robots.txt; returns page ids."""
        site = await self.config_store.load_site_config()
        page_ids = await self.config_store.list_pages()
        await asyncio.to_thread(self.public_dir.mkdir, parents=True, exist_ok=True)

        pages = []
        for page_id in page_ids:
            page = await self.config_store.load_page_config(page_id)
            await self._write(page_filename(page_id), self.render_page(page, site))
            pages.append(page)

        await self._write("sitemap.xml", self.render_sitemap(pages, site))
        await self._write("robots.txt", self.render_robots_txt(site))
        LOGGER.info("Site generation completed: %s page(s)", len(page_ids))
        return page_ids

    async def generate_page(self, page_id: str, site: Optional[Dict[str, Any]] = None) -> Path:
        site = site or await self.config_store.load_site_config()
        page = await self.config_store.load_page_config(page_id)
        await asyncio.to_thread(self.public_dir.mkdir, parents=True, exist_ok=True)
        path = await self._write(page_filename(page_id), self.render_page(page, site))
        LOGGER.debug("Page generated: %s -> %s", page_id, path)
        return path

    async def _write(self, name: str, content: str) -> Path:
        path = self.public_dir / name
        await asyncio.to_thread(path.write_text, content, "utf-8")
        return path

    # -- rendering ---------------------------------------------------------------

    def render_page(self, page: Dict[str, Any], site: Dict[str, Any]) -> str:
        page_id = page["id"]
        if page_id == "home":
            title = f"{site['businessName']} - {site.get('industry', '')}"
        else:
            title = f"{page['title']} | {site['businessName']}"
        description = page.get("metaDescription") or self.extract_description(page.get("sections", []))
        canonical = page_url(site, page_id)
        og_image = page.get("featuredImage")

        style = STYLE_TEMPLATE.format(
            font=site.get("fontFamily") or "system-ui, -apple-system, sans-serif",
            primary=site.get("primaryColor") or "#333",
            secondary=site.get("secondaryColor") or "#666",
        )
        structured = json.dumps(self.structured_data(site), indent=2).replace("</", "<\\/")

        footer_links = []
        if site.get("privacyPolicyEnabled"):
            footer_links.append('<p><a href="/privacy.html">Privacy Policy</a></p>')
        if site.get("termsOfServiceEnabled"):
            footer_links.append('<p><a href="/terms.html">Terms of Service</a></p>')

        head = [
            '<meta charset="UTF-8">',
            '<meta name="viewport" content="width=device-width, initial-scale=1.0">',
            f"<title>{_esc(title)}</title>",
            f'<meta name="description" content="{_esc(description)}">',
            f'<link rel="canonical" href="{_esc(canonical)}">',
            f'<meta property="og:title" content="{_esc(page["title"])}">',
            f'<meta property="og:description" content="{_esc(description)}">',
            f'<meta property="og:url" content="{_esc(canonical)}">',
            '<meta property="og:type" content="website">',
            f'<meta property="og:site_name" content="{_esc(site["businessName"])}">',
        ]
        if og_image:
            head.append(f'<meta property="og:image" content="{_esc(og_image)}">')
        head += [
            '<link rel="icon" type="image/x-icon" href="/favicon.ico">',
            '<link rel="apple-touch-icon" href="/apple-touch-icon.png">',
            f'<script type="application/ld+json">\n{structured}\n</script>',
            f"<style>{style}</style>",
        ]

        return "\n".join(
            [
                "<!DOCTYPE html>",
                '<html lang="en">',
                "<head>",
                *("  " + line for line in head),
                "</head>",
                "<body>",
                "  <nav>",
                f'    <a href="/" class="logo">{_esc(site["businessName"])}</a>',
                "    <ul>",
                self.render_navigation(site),
                "    </ul>",
                "  </nav>",
                "  <main>",
                self.render_sections(page.get("sections", [])),
                "  </main>",
                "  <footer>",
                f"    <p>&copy; {datetime.now().year} {_esc(site['businessName'])}. All rights reserved.</p>",
                f"    <p>{_esc(site.get('email'))} | {_esc(site.get('phone'))}</p>",
                *("    " + link for link in footer_links),
                "  </footer>",
                "</body>",
                "</html>",
            ]
        )

    @staticmethod
    def render_navigation(site: Dict[str, Any]) -> str:
        items = sorted(site.get("navigation", []), key=lambda item: item.get("order", 0))
        lines = []
        for item in items:
            href = "/" if item.get("pageId") == "home" else f"/{item.get('pageId')}.html"
            lines.append(f'      <li><a href="{_esc(href)}">{_esc(item.get("label"))}</a></li>')
        return "\n".join(lines)

    def render_sections(self, sections: List[Dict[str, Any]]) -> str:
        ordered = sorted(sections, key=lambda s: s.get("order", 0))
        return "\n".join(filter(None, (self.render_section(s) for s in ordered)))

    @staticmethod
    def render_section(section: Dict[str, Any]) -> str:
        kind = section.get("type")
        content = section.get("content") or {}
        if kind == "hero":
            cta = ""
            if content.get("ctaText") and content.get("ctaLink"):
                cta = f'<a href="{_esc(content["ctaLink"])}" class="cta-button">{_esc(content["ctaText"])}</a>'
            return (
                '    <section class="section hero">\n'
                f"      <h1>{_esc(content.get('headline'))}</h1>\n"
                f"      <p>{_esc(content.get('subheadline'))}</p>\n"
                f"      {cta}\n"
                "    </section>"
            )
        if kind == "text":
            heading = f"<h2>{_esc(content['heading'])}</h2>" if content.get("heading") else ""
            # body is trusted HTML authored through the editor
            return (
                '    <section class="section text-section">\n'
                f"      {heading}\n"
                f"      <div>{content.get('body') or ''}</div>\n"
                "    </section>"
            )
        if kind == "image":
            caption = f"<p>{_esc(content['caption'])}</p>" if content.get("caption") else ""
            return (
                '    <section class="section image-section">\n'
                f'      <img src="/assets/{_esc(content.get("imageId"))}" alt="{_esc(content.get("altText"))}" loading="lazy">\n'
                f"      {caption}\n"
                "    </section>"
            )
        if kind == "cta":
            return (
                '    <section class="section" style="text-align: center;">\n'
                f'      <a href="{_esc(content.get("link"))}" class="cta-button">{_esc(content.get("text"))}</a>\n'
                "    </section>"
            )
        return ""

    @staticmethod
    def extract_description(sections: List[Dict[str, Any]]) -> str:
        """First 160 characters of plain text from the first hero/text section."""
        for section in sections:
            if section.get("type") not in ("text", "hero"):
                continue
            content = section.get("content") or {}
            text = content.get("body") or content.get("subheadline") or content.get("headline") or ""
            plain = TAG_RE.sub("", text).strip()
            return plain[:160].strip() + ("..." if len(plain) > 160 else "")
        return ""

    @staticmethod
    def structured_data(site: Dict[str, Any]) -> Dict[str, Any]:
        address = site.get("address") or {}
        return {
            "@context": "https://schema.org",
            "@type": "LocalBusiness",
            "name": site.get("businessName"),
            "description": site.get("description"),
            "url": f"https://{site.get('domain')}",
            "telephone": site.get("phone"),
            "email": site.get("email"),
            "address": {
                "@type": "PostalAddress",
                "streetAddress": address.get("street"),
                "addressLocality": address.get("city"),
                "addressRegion": address.get("state"),
                "postalCode": address.get("zip"),
                "addressCountry": address.get("country"),
            },
        }

    @staticmethod
    def render_sitemap(pages: List[Dict[str, Any]], site: Dict[str, Any]) -> str:
        urls = []
        for page in pages:
            is_home = page["id"] == "home"
            urls.append(
                "  <url>\n"
                f"    <loc>{_esc(page_url(site, page['id']))}</loc>\n"
                f"    <lastmod>{_esc(page.get('lastModified'))}</lastmod>\n"
                f"    <changefreq>{'weekly' if is_home else 'monthly'}</changefreq>\n"
                f"    <priority>{'1.0' if is_home else '0.8'}</priority>\n"
                "  </url>"
            )
        return (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
            + "\n".join(urls)
            + "\n</urlset>\n"
        )

    @staticmethod
    def render_robots_txt(site: Dict[str, Any]) -> str:
        return f"User-agent: *\nAllow: /\n\nSitemap: https://{site['domain']}/sitemap.xml\n"
