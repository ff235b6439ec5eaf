"""Starter legal pages (privacy policy, terms of service) filled from site settings.

The generated configs are ordinary page configs, so they can be edited in a
session like any other page. Sections marked "[Customizable section]" are
placeholders the owner is expected to adapt.
"""

from __future__ import annotations

import html
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from dal.config_store import utc_now_iso

LOGGER = logging.getLogger(__name__)

PRIVACY_PAGE_ID = "privacy"
TERMS_PAGE_ID = "terms"
CUSTOMIZE_NOTE = "<p><strong>[Customizable section]</strong> {}</p>"


def _text(section_id: str, order: int, heading: str, body: str) -> Dict[str, Any]:
    return {
        "type": "text",
        "id": section_id,
        "order": order,
        "content": {"heading": heading, "body": body},
    }


def _bullets(items: List[str]) -> str:
    return "<ul>\n" + "\n".join(f"  <li>{item}</li>" for item in items) + "\n</ul>"


def format_address(site: Dict[str, Any]) -> str:
    address = site.get("address") or {}
    return "{street}, {city}, {state} {zip}, {country}".format(
        **{name: address.get(name, "") for name in ("street", "city", "state", "zip", "country")}
    )


class TemplateGenerator:
    """Build privacy policy and terms of service page configs for a site."""

    def __init__(self, clock=lambda: datetime.now(timezone.utc)) -> None:
        self._clock = clock

    def _legal_page(self, page_id: str, title: str, site: Dict[str, Any], sections, keywords) -> Dict[str, Any]:
        now = utc_now_iso()
        return {
            "id": page_id,
            "title": title,
            "sections": sections,
            "metaDescription": f"{title} for {site['businessName']}",
            "keywords": keywords,
            "intent": {
                "primaryGoal": "Legal compliance",
                "targetAudience": "All visitors",
                "callsToAction": [],
            },
            "createdAt": now,
            "lastModified": now,
            "version": 0,
        }

    def _contact_block(self, name: str, site: Dict[str, Any]) -> str:
        return (
            "<p>\n"
            f"<strong>{html.escape(name)}</strong><br>\n"
            f"Email: {html.escape(site.get('email', ''))}<br>\n"
            f"Phone: {html.escape(site.get('phone', ''))}<br>\n"
            f"Address: {html.escape(format_address(site))}\n"
            "</p>"
        )

    def generate_privacy_policy(self, site: Dict[str, Any]) -> Dict[str, Any]:
        LOGGER.debug("Generating privacy policy for %s", site["businessName"])
        business = html.escape(site["businessName"])
        domain = html.escape(site["domain"])
        updated = self._clock().strftime("%B %d, %Y")

        sections = [
            _text(
                "intro",
                1,
                "Privacy Policy",
                f"<p>Last updated: {updated}</p>\n"
                f'<p>{business} ("we", "our", or "us") is committed to protecting your privacy. '
                "This Privacy Policy explains how we collect, use, and safeguard your information "
                f"when you visit our website {domain}.</p>",
            ),
            _text(
                "information-collection",
                2,
                "Information We Collect",
                "<p>We may collect information that you provide directly to us, including:</p>\n"
                + _bullets(
                    [
                        "Name and contact information",
                        "Email address",
                        "Phone number",
                        "Any other information you choose to provide",
                    ]
                )
                + "\n"
                + CUSTOMIZE_NOTE.format("Describe your specific data collection practices."),
            ),
            _text(
                "information-use",
                3,
                "How We Use Your Information",
                "<p>We use the information we collect to:</p>\n"
                + _bullets(
                    [
                        "Provide and maintain our services",
                        "Respond to your inquiries and requests",
                        "Send you updates and marketing communications (with your consent)",
                        "Improve our website and services",
                    ]
                )
                + "\n"
                + CUSTOMIZE_NOTE.format("Add specific uses relevant to your business."),
            ),
            _text(
                "data-protection",
                4,
                "Data Protection",
                "<p>We implement appropriate technical and organizational measures to protect your "
                "personal information against unauthorized access, alteration, disclosure, or destruction.</p>\n"
                + CUSTOMIZE_NOTE.format("Describe your specific security measures."),
            ),
            _text(
                "your-rights",
                5,
                "Your Rights",
                "<p>You have the right to:</p>\n"
                + _bullets(
                    [
                        "Access your personal information",
                        "Correct inaccurate information",
                        "Request deletion of your information",
                        "Opt-out of marketing communications",
                    ]
                )
                + "\n<p>To exercise these rights, please contact us using the information below.</p>",
            ),
            _text(
                "contact",
                6,
                "Contact Us",
                "<p>If you have questions about this Privacy Policy, please contact us:</p>\n"
                + self._contact_block(site["businessName"], site),
            ),
        ]
        return self._legal_page(
            PRIVACY_PAGE_ID, "Privacy Policy", site, sections, ["privacy", "policy", "data protection"]
        )

    def generate_terms_of_service(self, site: Dict[str, Any]) -> Dict[str, Any]:
        LOGGER.debug("Generating terms of service for %s", site["businessName"])
        business = html.escape(site["businessName"])
        legal_name = site.get("legalName") or site["businessName"]
        domain = html.escape(site["domain"])
        updated = self._clock().strftime("%B %d, %Y")

        sections = [
            _text(
                "intro",
                1,
                "Terms of Service",
                f"<p>Last updated: {updated}</p>\n"
                f"<p>Please read these Terms of Service carefully before using {domain} "
                f"operated by {html.escape(legal_name)}.</p>\n"
                "<p>By accessing or using our website, you agree to be bound by these Terms.</p>",
            ),
            _text(
                "use-license",
                2,
                "Use License",
                f"<p>Permission is granted to temporarily access the materials on {business}'s website "
                "for personal, non-commercial transitory viewing only.</p>\n"
                "<p>This is the grant of a license, not a transfer of title, and under this license you may not:</p>\n"
                + _bullets(
                    [
                        "Modify or copy the materials",
                        "Use the materials for any commercial purpose",
                        "Attempt to reverse engineer any software on the website",
                        "Remove any copyright or proprietary notations",
                    ]
                )
                + "\n"
                + CUSTOMIZE_NOTE.format("Adjust based on your specific use case."),
            ),
            _text(
                "disclaimer",
                3,
                "Disclaimer",
                f"<p>The materials on {business}'s website are provided on an 'as is' basis. "
                f"{business} makes no warranties, expressed or implied, and hereby disclaims all other "
                "warranties including, without limitation, implied warranties or conditions of "
                "merchantability, fitness for a particular purpose, or non-infringement of intellectual "
                "property or other violation of rights.</p>\n"
                + CUSTOMIZE_NOTE.format("Consult with legal counsel for appropriate disclaimers."),
            ),
            _text(
                "limitations",
                4,
                "Limitations",
                f"<p>In no event shall {business} or its suppliers be liable for any damages (including, "
                "without limitation, damages for loss of data or profit, or due to business interruption) "
                f"arising out of the use or inability to use the materials on {business}'s website.</p>\n"
                + CUSTOMIZE_NOTE.format("Consult with legal counsel for appropriate limitations."),
            ),
            _text(
                "modifications",
                5,
                "Revisions and Errata",
                f"<p>{business} may revise these Terms of Service at any time without notice. By using "
                "this website you are agreeing to be bound by the then current version of these Terms of Service.</p>",
            ),
            _text(
                "contact",
                6,
                "Contact Information",
                "<p>For questions about these Terms, contact:</p>\n" + self._contact_block(legal_name, site),
            ),
        ]
        return self._legal_page(TERMS_PAGE_ID, "Terms of Service", site, sections, ["terms", "service", "legal"])
