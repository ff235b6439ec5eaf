"""First-run setup: site settings, starter pages and the initial static build."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request

from controllers.http_errors import to_http_exception
from dal.config_store import ConfigStore, utc_now_iso
from services.static_generator import StaticGenerator
from services.template_generator import TemplateGenerator
from utils.errors import SiteBuilderError
from utils.validators import is_valid_page_id

LOGGER = logging.getLogger(__name__)

DEFAULT_PAGES = ("home", "about", "contact")
DEFAULT_FONT = "system-ui, -apple-system, sans-serif"


def starter_page(page_id: str, site: Dict[str, Any]) -> Dict[str, Any]:
    """Page config with a single hero section, ready for the assistant to refine."""
    now = utc_now_iso()
    business = site["businessName"]
    return {
        "id": page_id,
        "title": page_id.replace("-", " ").replace("_", " ").title(),
        "sections": [
            {
                "type": "hero",
                "id": "hero-1",
                "order": 1,
                "content": {
                    "headline": f"Welcome to {business}",
                    "subheadline": site.get("description") or "Your trusted partner",
                    "ctaText": "Get Started",
                    "ctaLink": "/contact.html",
                },
            }
        ],
        "metaDescription": f"{page_id} page for {business}",
        "keywords": [page_id, business.lower(), site.get("industry", "").lower()],
        "intent": {
            "primaryGoal": "Provide information",
            "targetAudience": "General public",
            "callsToAction": ["Contact us"],
        },
        "createdAt": now,
        "lastModified": now,
        "version": 0,
    }


async def complete_onboarding(
    request: Request,
    site_fields: Dict[str, Any],
    selected_pages: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """Save the site config and starter pages, then render the whole site.

    Args:
        request: FastAPI request (components live on app.state).
        site_fields: Business details from the onboarding form.
        selected_pages: Page ids to create; defaults to home/about/contact.

    When the privacy policy or terms of service toggles are set, the matching
    legal page is generated from the business details and added to navigation.
    """
    store: ConfigStore = request.app.state.config_store
    generator: StaticGenerator = request.app.state.static_generator
    templates: TemplateGenerator = request.app.state.template_generator

    page_ids = list(dict.fromkeys(selected_pages or DEFAULT_PAGES))
    invalid = [page_id for page_id in page_ids if not is_valid_page_id(page_id)]
    if invalid:
        raise HTTPException(status_code=400, detail=f"Invalid page ids: {', '.join(invalid)}")

    now = utc_now_iso()
    site = {
        "legalName": site_fields.get("legalName") or site_fields["businessName"],
        "logo": "",
        "favicon": "",
        "primaryColor": "#333333",
        "secondaryColor": "#666666",
        "fontFamily": DEFAULT_FONT,
        "privacyPolicyEnabled": False,
        "termsOfServiceEnabled": False,
        **{key: value for key, value in site_fields.items() if value is not None},
        "createdAt": now,
    }

    legal_pages = []
    if site["privacyPolicyEnabled"]:
        legal_pages.append(templates.generate_privacy_policy(site))
    if site["termsOfServiceEnabled"]:
        legal_pages.append(templates.generate_terms_of_service(site))
    # a generated legal page replaces a starter page with the same id
    legal_ids = {page["id"] for page in legal_pages}
    page_ids = [page_id for page_id in page_ids if page_id not in legal_ids]

    navigation = [
        {"label": page_id.replace("-", " ").replace("_", " ").title(), "pageId": page_id}
        for page_id in page_ids
    ]
    navigation += [{"label": page["title"], "pageId": page["id"]} for page in legal_pages]
    site["navigation"] = [{**item, "order": i} for i, item in enumerate(navigation, start=1)]

    LOGGER.info(
        "Processing onboarding for %s (%s page(s), %s legal)",
        site.get("businessName"),
        len(page_ids),
        len(legal_pages),
    )
    try:
        site = await store.save_site_config(site)
        for page_id in page_ids:
            await store.save_page_config(starter_page(page_id, site))
        for page in legal_pages:
            await store.save_page_config(page)
        generated = await generator.generate_site()
    except SiteBuilderError as exc:
        LOGGER.error("Onboarding failed: %s", exc)
        raise to_http_exception(exc) from exc

    LOGGER.info("Onboarding completed for %s", site["businessName"])
    return {"success": True, "siteConfig": site, "pages": generated}


async def publish_site(request: Request) -> Dict[str, Any]:
    """Re-render every page from the canonical configuration."""
    generator: StaticGenerator = request.app.state.static_generator
    try:
        generated = await generator.generate_site()
    except SiteBuilderError as exc:
        raise to_http_exception(exc) from exc
    return {"success": True, "pages": generated}
