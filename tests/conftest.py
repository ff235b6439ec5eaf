import copy
import json

import pytest

from dal.config_store import ConfigStore

SITE_CONFIG = {
    "businessName": "Harbor Bakery",
    "legalName": "Harbor Bakery LLC",
    "industry": "Bakery",
    "description": "Fresh bread and pastries baked every morning.",
    "email": "hello@harborbakery.com",
    "phone": "(555) 123-4567",
    "address": {
        "street": "12 Wharf Street",
        "city": "Portland",
        "state": "ME",
        "zip": "04101",
        "country": "USA",
    },
    "logo": "",
    "favicon": "",
    "primaryColor": "#8B4513",
    "secondaryColor": "#F5DEB3",
    "fontFamily": "Georgia, serif",
    "domain": "harborbakery.com",
    "navigation": [
        {"label": "About", "pageId": "about", "order": 2},
        {"label": "Home", "pageId": "home", "order": 1},
    ],
    "privacyPolicyEnabled": True,
    "termsOfServiceEnabled": False,
    "createdAt": "2024-01-01T00:00:00+00:00",
    "lastModified": "2024-01-01T00:00:00+00:00",
}


def make_page(page_id="home", title="Home"):
    return {
        "id": page_id,
        "title": title,
        "sections": [
            {
                "type": "hero",
                "id": "hero-1",
                "order": 1,
                "content": {
                    "headline": "Welcome to Harbor Bakery",
                    "subheadline": "Fresh bread every morning",
                    "ctaText": "Visit us",
                    "ctaLink": "/contact.html",
                },
            }
        ],
        "metaDescription": "Harbor Bakery home page",
        "keywords": ["bakery", "bread"],
        "intent": {
            "primaryGoal": "Bring visitors into the shop",
            "targetAudience": "Local families",
            "callsToAction": ["Visit us"],
        },
        "createdAt": "2024-01-01T00:00:00+00:00",
        "lastModified": "2024-01-01T00:00:00+00:00",
        "version": 1,
    }


@pytest.fixture
def site_config():
    return copy.deepcopy(SITE_CONFIG)


@pytest.fixture
def page_factory():
    return make_page


@pytest.fixture
def store(tmp_path):
    """ConfigStore seeded with site.json plus home and about pages (written synchronously)."""
    config_store = ConfigStore(tmp_path / "config")
    config_store._atomic_write(config_store.site_config_path, _dump(SITE_CONFIG))
    for page_id, title in (("home", "Home"), ("about", "About")):
        config_store._atomic_write(config_store.page_config_path(page_id), _dump(make_page(page_id, title)))
    return config_store


def _dump(document):
    return json.dumps(document, indent=2)
