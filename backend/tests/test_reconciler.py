from conftest import make_android_record, make_ios_record

from core.models import CanonicalAppRecord
from core.reconciler import Reconciler, build_domain_names, clean_website_url, normalize_title
from utils.error_tracker import ErrorStep, ErrorTracker


def test_chat_app_matched_and_website_cleaned():
    a = [make_ios_record("Chat App", website="https://chat.example/mobile/")]
    b = [make_android_record("chat app", package_name="com.chat.app")]

    result = Reconciler().merge(a, b)

    assert result.skipped == []
    assert len(result.canonical) == 1
    record = result.canonical[0]
    assert record.title == "Chat App"
    assert record.android_package_name == "com.chat.app"
    assert record.website == "https://chat.example"
    assert record.domain_name == ["https://chat.example"]
    assert record.is_popular is True


def test_unmatched_app_store_record_is_skipped():
    result = Reconciler().merge([make_ios_record("Lonely App")], [])

    assert result.canonical == []
    assert result.skipped == ["Lonely App"]


def test_skipped_titles_are_recorded_in_error_tracker():
    tracker = ErrorTracker(name="test_reconcile", log_errors=False)

    result = Reconciler(error_tracker=tracker).merge(
        [make_ios_record("Lonely App"), make_ios_record("Chat App")], [make_android_record("Chat App")]
    )

    assert result.skipped == ["Lonely App"]
    skipped = tracker.get_errors_by_step(ErrorStep.RECONCILE)
    assert [e.target for e in skipped] == ["Lonely App"]
    assert skipped[0].source == "reconciler"
    assert tracker.get_error_count() == 1


def test_play_store_only_records_are_ignored():
    a = [make_ios_record("Spotify")]
    b = [make_android_record("Deezer"), make_android_record("Spotify")]

    result = Reconciler().merge(a, b)

    assert [r.title for r in result.canonical] == ["Spotify"]
    assert result.skipped == []


def test_first_matching_play_store_record_wins():
    a = [make_ios_record("Netflix")]
    b = [
        make_android_record("NETFLIX", package_name="com.netflix.mediaclient"),
        make_android_record("netflix", package_name="com.netflix.ninja"),
    ]

    result = Reconciler().merge(a, b)

    assert result.canonical[0].android_package_name == "com.netflix.mediaclient"


def test_field_ownership_between_sources():
    a = [make_ios_record(
        "Tinder",
        bundle_id="com.cardify.tinder",
        developer="Tinder LLC",
        description="Match. Chat. Date.",
        app_country="US",
        market_status="PUBLISHED",
        icon="https://is1.mzstatic.com/tinder.png",
    )]
    b = [make_android_record(
        "Tinder",
        package_name="com.tinder",
        developer="Tinder (Play)",
        cat_key="DATING",
        cat_keys=["DATING", "APPLICATION"],
        icon="https://play-lh.googleusercontent.com/tinder",
        icon_72="https://play-lh.googleusercontent.com/tinder=s72-rw",
        app_availability={"available_in": ["IN", "US"], "package_name": "com.tinder"},
    )]

    record = Reconciler().merge(a, b).canonical[0]

    assert record.ios_bundle_id == "com.cardify.tinder"
    assert record.android_package_name == "com.tinder"
    assert record.developer == "Tinder LLC"
    assert record.description == "Match. Chat. Date."
    assert record.icon == "https://play-lh.googleusercontent.com/tinder"
    assert record.icon_72.endswith("=s72-rw")
    assert record.cat_key == "DATING"
    assert record.cat_keys == ["DATING", "APPLICATION"]
    assert record.app_availability["package_name"] == "com.tinder"


def test_missing_website_leaves_fields_absent():
    record = Reconciler().merge([make_ios_record("Hinge")], [make_android_record("Hinge")]).canonical[0]

    assert record.website is None
    assert record.domain_name is None
    serialized = record.to_dict()
    assert "website" not in serialized
    assert "domain_name" not in serialized


def test_merge_is_idempotent():
    a = [
        make_ios_record("Chat App", website="https://chat.example/mobile/"),
        make_ios_record("Lonely App"),
    ]
    b = [make_android_record("chat app", package_name="com.chat.app")]
    reconciler = Reconciler()

    first = reconciler.merge(a, b)
    second = reconciler.merge(a, b)

    assert [r.to_dict() for r in first.canonical] == [r.to_dict() for r in second.canonical]
    assert first.skipped == second.skipped


def test_canonical_record_reads_legacy_popular_key():
    record = CanonicalAppRecord.from_dict({"title": "Roblox", "isPopular": True, "unknown": 1})

    assert record.is_popular is True
    assert record.to_dict() == {"title": "Roblox", "is_popular": True}


def test_normalize_title_ignores_case_and_whitespace():
    assert normalize_title("Candy  Crush\tSaga") == normalize_title("candycrush saga")
    assert normalize_title(None) == ""


def test_clean_website_url_variants():
    assert clean_website_url("https://chat.example/mobile/") == "https://chat.example"
    assert clean_website_url("https://www.example.com/en/mobile/app/") == "https://www.example.com/en/app"
    assert clean_website_url("https://mobile.example.com/") == "https://mobile.example.com"
    assert clean_website_url("chat.example/mobile/") == "chat.example"
    assert clean_website_url("www.example.com/mobile") == "www.example.com"
    assert clean_website_url("") == ""
    assert clean_website_url(None) == ""


def test_build_domain_names_deduplicates_and_skips_relative():
    assert build_domain_names("https://example.com/support") == [
        "https://example.com/support",
        "https://example.com",
    ]
    assert build_domain_names("not a url") == []
    assert build_domain_names("") == []
