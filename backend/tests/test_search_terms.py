import pytest

from config import ConfigurationError
from scrapers import APP_STORE, PLAY_STORE, AppStoreSearchAdapter, get_adapter
from scrapers.search_terms import (
    build_search_groups,
    build_search_term,
    capitalize_app_name,
    generate_play_store_query,
)


def test_capitalize_app_name():
    assert capitalize_app_name("whatsapp messenger") == "Whatsapp Messenger"
    assert capitalize_app_name("slither.io") == "Slither.io"


@pytest.mark.parametrize(
    "name, expected",
    [
        ("instagram", "instagram app"),
        ("TikTok", "tiktok app bytedance"),
        ("candy crush games", "candy crush games game"),
        ("slither.io", "slither.io game"),
        ("word puzzle", "word puzzle game"),
        ("bumble", "bumble app"),
    ],
)
def test_generate_play_store_query(name, expected):
    assert generate_play_store_query(name) == expected


def test_plain_string_entry():
    term = build_search_term("snapchat", "social")

    assert term.display_name == "Snapchat"
    assert term.category == "social"
    assert term.query_for(APP_STORE) == "snapchat"
    assert term.query_for(PLAY_STORE) == "snapchat app"


def test_object_entry_with_per_source_terms():
    term = build_search_term(
        {"display_name": "TikTok", "search_terms": {"itunes": "TikTok", "playstore": "tiktok bytedance"}},
        "social",
    )

    assert term.display_name == "TikTok"
    assert term.query_for(APP_STORE) == "TikTok"
    assert term.query_for(PLAY_STORE) == "tiktok bytedance"


def test_object_entry_with_single_search_term():
    term = build_search_term({"name": "Hinge", "search_term": "hinge dating app"}, "dating")

    assert term.query_for(APP_STORE) == "Hinge"
    assert term.query_for(PLAY_STORE) == "hinge dating app"


@pytest.mark.parametrize("entry", ["", "   ", {"search_term": "x"}, 42])
def test_invalid_entries_raise_configuration_error(entry):
    with pytest.raises(ConfigurationError):
        build_search_term(entry, "social")


def test_build_search_groups_preserves_order():
    groups = build_search_groups({
        "categories": {
            "social": {"apps": ["instagram", "facebook"]},
            "music": {"apps": ["spotify"]},
        }
    })

    assert list(groups) == ["social", "music"]
    assert [t.display_name for t in groups["social"]] == ["Instagram", "Facebook"]
    assert groups["music"][0].category == "music"


def test_get_adapter():
    assert isinstance(get_adapter(APP_STORE), AppStoreSearchAdapter)
    with pytest.raises(ValueError):
        get_adapter("windows_store")
