import json

import pytest

from dal.config_store import ConfigStore, strip_session_fields, validate_page_config, validate_site_config
from utils.errors import (
    ConfigValidationError,
    DraftNotFoundError,
    PageNotFoundError,
    SiteConfigNotFoundError,
)


@pytest.mark.asyncio
async def test_save_page_config_bumps_version_and_timestamp(store, page_factory):
    page = page_factory("services", "Services")
    page["version"] = 4
    page["lastModified"] = "2000-01-01T00:00:00+00:00"

    saved = await store.save_page_config(page)

    assert saved["version"] == 5
    assert saved["lastModified"] != "2000-01-01T00:00:00+00:00"
    assert await store.load_page_config("services") == saved


@pytest.mark.asyncio
async def test_list_pages_excludes_drafts(store, page_factory):
    draft = {**page_factory("home"), "sessionId": "abc", "startedAt": "now", "conversationHistory": []}
    await store.save_draft_config(draft)

    assert await store.list_pages() == ["about", "home"]
    assert await store.list_draft_configs() == ["home"]


@pytest.mark.asyncio
async def test_missing_documents_raise_typed_errors(tmp_path):
    empty = ConfigStore(tmp_path / "empty")
    with pytest.raises(SiteConfigNotFoundError):
        await empty.load_site_config()
    with pytest.raises(PageNotFoundError):
        await empty.load_page_config("home")
    with pytest.raises(DraftNotFoundError):
        await empty.load_draft_config("home")
    assert await empty.stat_draft_config("home") is None


@pytest.mark.asyncio
async def test_invalid_json_is_a_validation_error(store):
    store.page_config_path("home").write_text("{broken", encoding="utf-8")
    with pytest.raises(ConfigValidationError):
        await store.load_page_config("home")


@pytest.mark.asyncio
async def test_page_ids_must_be_slugs(store):
    for bad in ("../site", "a/b", "", "home\n", ".hidden"):
        with pytest.raises(ConfigValidationError):
            await store.load_page_config(bad)


@pytest.mark.asyncio
async def test_delete_draft_is_idempotent(store, page_factory):
    await store.save_draft_config({**page_factory("home"), "sessionId": "s", "startedAt": "t", "conversationHistory": []})
    await store.delete_draft_config("home")
    await store.delete_draft_config("home")
    assert not await store.draft_config_exists("home")


@pytest.mark.asyncio
async def test_promote_draft_strips_session_fields(store, page_factory):
    draft = {
        **page_factory("home"),
        "title": "Fresh Title",
        "sessionId": "s1",
        "startedAt": "2024-05-01T00:00:00+00:00",
        "conversationHistory": [{"role": "user", "content": "hi", "timestamp": "t"}],
    }
    await store.save_draft_config(draft)

    saved = await store.promote_draft_to_page("home")

    assert saved["title"] == "Fresh Title"
    assert set(saved) == set(strip_session_fields(draft))


@pytest.mark.asyncio
async def test_writes_leave_no_temp_files(store, site_config):
    await store.save_site_config(site_config)
    leftovers = [p.name for p in store.config_dir.rglob("*.tmp")]
    assert leftovers == []
    assert json.loads(store.site_config_path.read_text(encoding="utf-8"))["businessName"] == "Harbor Bakery"


def test_site_validation_reports_every_problem(site_config):
    site_config["email"] = "not-an-email"
    site_config["phone"] = "123"
    site_config["primaryColor"] = "red"
    del site_config["address"]["city"]

    with pytest.raises(ConfigValidationError) as excinfo:
        validate_site_config(site_config)

    message = str(excinfo.value)
    for fragment in ("email", "phone", "primaryColor", "address.city"):
        assert fragment in message


def test_page_validation_rejects_bad_featured_image(page_factory):
    page = page_factory()
    page["featuredImage"] = "not a url"
    with pytest.raises(ConfigValidationError):
        validate_page_config(page)

    page["featuredImage"] = "/assets/processed/768/hero.webp"
    validate_page_config(page)


def test_page_validation_requires_intent(page_factory):
    page = page_factory()
    page["intent"] = {"primaryGoal": "Sell", "callsToAction": "Buy"}
    with pytest.raises(ConfigValidationError) as excinfo:
        validate_page_config(page)
    assert "targetAudience" in str(excinfo.value)
    assert "callsToAction" in str(excinfo.value)
