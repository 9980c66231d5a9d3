"""Unit tests for the upstream payload normalizer."""
import copy
import json

import pytest

from app.services.normalizer import (
    PROVIDER_FIELD_CHAINS,
    coerce_count,
    extract_posts,
    normalize_post,
    normalize_posts,
    normalize_profile,
    resolve_path,
)


class TestCoerceCount:
    """Integer-prefix parsing with a zero floor."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (1200, 1200),
            ("1200", 1200),
            ("12abc", 12),
            (" 42 ", 42),
            (3.9, 3),
            (-5, 0),
            ("-17", 0),
            ("abc", 0),
            ("", 0),
            (None, 0),
            (True, 0),
            ({"count": 3}, 0),
            ([1, 2], 0),
            (float("nan"), 0),
        ],
    )
    def test_coerce(self, value, expected):
        assert coerce_count(value) == expected


class TestResolvePath:
    def test_nested_dict(self):
        assert resolve_path({"user": {"followers": 3}}, "user.followers") == 3

    def test_list_index(self):
        assert resolve_path({"images": ["a", "b"]}, "images.1") == "b"

    def test_missing_segments_do_not_raise(self):
        missing = resolve_path({}, "absent")
        data = {"user": "not-a-dict", "images": []}

        assert resolve_path(data, "user.followers") is missing
        assert resolve_path(data, "images.0") is missing
        assert resolve_path(data, "images.first") is missing
        assert resolve_path("plain string", "a.b") is missing


class TestNormalizeProfile:
    """Profile mapping through the instagram120 fallback chains."""

    def test_followers_string_is_parsed(self):
        profile = normalize_profile({"followers": "1200", "username": "alice"}, "alice")

        assert profile.username == "alice"
        assert profile.followers_count == 1200
        assert profile.follower_count == 1200
        assert profile.posts_count == 0
        assert profile.media_count == 0

    def test_missing_counts_default_to_zero(self):
        profile = normalize_profile({"username": "alice"}, "alice")

        assert profile.followers_count == 0
        assert profile.following_count == 0
        assert profile.posts_count == 0

    def test_negative_and_garbage_counts_are_clamped(self):
        profile = normalize_profile(
            {"followers_count": -10, "following": "lots", "media_count": "-3"}, "bob"
        )

        assert profile.followers_count == 0
        assert profile.following_count == 0
        assert profile.posts_count == 0

    def test_priority_order(self):
        profile = normalize_profile(
            {"followers_count": 10, "followers": 99, "name": "Alt", "full_name": "Primary"},
            "carol",
        )

        assert profile.followers_count == 10
        assert profile.full_name == "Primary"

    def test_present_falsy_values_end_the_chain(self):
        profile = normalize_profile(
            {"followers_count": 0, "followers": "500", "full_name": "", "name": "Bob"}, "bob"
        )

        assert profile.followers_count == 0
        assert profile.full_name == ""

    def test_null_values_fall_through(self):
        profile = normalize_profile({"followers_count": None, "followers": "7"}, "dave")
        assert profile.followers_count == 7

    def test_nested_user_object(self):
        raw = {
            "user": {
                "username": "erin",
                "full_name": "Erin",
                "followers": 55,
                "edge_follow": {"count": 12},
                "edge_owner_to_timeline_media": {"count": 8},
                "is_verified": True,
            }
        }
        profile = normalize_profile(raw, "ignored")

        assert profile.username == "erin"
        assert profile.full_name == "Erin"
        assert profile.followers_count == 55
        assert profile.following_count == 12
        assert profile.posts_count == 8
        assert profile.media_count == 8
        assert profile.is_verified is True

    def test_requested_username_is_default(self):
        assert normalize_profile({"followers": 1}, "frank").username == "frank"

    def test_boolean_aliases(self):
        profile = normalize_profile({"verified": "true", "private": 1}, "gina")
        assert profile.is_verified is True
        assert profile.is_private is True

    def test_type_mismatched_fields_degrade(self):
        raw = {
            "username": ["not", "a", "string"],
            "biography": {"text": "nested"},
            "website": None,
            "is_private": {"weird": True},
        }
        profile = normalize_profile(raw, "hank")

        assert profile.username == "hank"
        assert profile.biography == ""
        assert profile.website == ""
        assert profile.is_private is False

    def test_raw_data_is_preserved(self):
        raw = {"followers": "12", "user": {"followers": -1, "extra": [1, {"a": None}]}}
        original = copy.deepcopy(raw)

        profile = normalize_profile(raw, "ivy")

        assert profile.raw_data == original
        assert json.dumps(profile.model_dump()["raw_data"], sort_keys=True) == json.dumps(
            original, sort_keys=True
        )

    def test_output_field_order(self):
        fields = list(normalize_profile({}, "x").model_dump().keys())
        assert fields == [
            "username",
            "full_name",
            "biography",
            "profile_pic_url",
            "followers_count",
            "following_count",
            "posts_count",
            "media_count",
            "is_verified",
            "is_private",
            "website",
            "email",
            "phone_number",
            "follower_count",
            "raw_data",
        ]

    @pytest.mark.parametrize("raw", [None, [], "text", 42, [{"followers": 5}]])
    def test_non_object_input_never_raises(self, raw):
        profile = normalize_profile(raw, "jack")
        assert profile.username == "jack"
        assert profile.followers_count == 0
        assert profile.raw_data == raw


class TestNormalizePost:
    def test_bare_post_fields(self):
        post = normalize_post({"pk": "1", "text": "hi", "likes": "5"})

        assert post.id == "1"
        assert post.caption == "hi"
        assert post.like_count == 5
        assert post.comment_count == 0
        assert post.media_type == "image"
        assert post.timestamp is None
        assert post.media_url == ""

    def test_numeric_pk_is_stringified(self):
        assert normalize_post({"pk": 3141}).id == "3141"

    def test_media_url_falls_back_to_images(self):
        assert normalize_post({"images": ["https://a/1.jpg", "x"]}).media_url == "https://a/1.jpg"
        assert normalize_post({"images": [{"url": "https://a/2.jpg"}]}).media_url == "https://a/2.jpg"
        assert normalize_post({"image_url": "u", "images": ["v"]}).media_url == "u"

    def test_caption_object_falls_back_to_text(self):
        assert normalize_post({"caption": {"text": "nested"}}).caption == "nested"

    def test_timestamp_passthrough(self):
        assert normalize_post({"taken_at": 1700000000}).timestamp == 1700000000
        assert normalize_post({"timestamp": "2024-01-01T00:00:00Z"}).timestamp == "2024-01-01T00:00:00Z"
        assert normalize_post({"timestamp": {"bad": 1}}).timestamp is None

    def test_negative_counts_clamped(self):
        post = normalize_post({"like_count": -4, "comments": "-2"})
        assert post.like_count == 0
        assert post.comment_count == 0

    def test_raw_data_is_same_object(self):
        raw = {"id": "9", "extra": {"deep": [1, 2]}}
        assert normalize_post(raw).raw_data == raw


class TestExtractPosts:
    def test_bare_array(self):
        assert extract_posts([{"id": 1}]) == [{"id": 1}]

    def test_posts_key(self):
        assert extract_posts({"posts": [{"id": 1}]}) == [{"id": 1}]

    def test_data_key(self):
        assert extract_posts({"data": [{"id": 2}]}) == [{"id": 2}]

    @pytest.mark.parametrize("data", [{}, {"posts": None}, {"data": "x"}, None, "str"])
    def test_defaults_to_empty(self, data):
        assert extract_posts(data) == []

    def test_non_object_elements_are_tolerated(self):
        posts = normalize_posts([None, "x", {"id": "1"}])
        assert [p.id for p in posts] == ["", "", "1"]
        assert posts[1].raw_data == "x"


class TestProviderTables:
    """Other providers are pure data in the chain table."""

    def test_every_provider_defines_all_fields(self):
        reference = PROVIDER_FIELD_CHAINS["instagram120"]
        for provider, tables in PROVIDER_FIELD_CHAINS.items():
            for kind in ("profile", "post"):
                assert set(tables[kind]) == set(reference[kind]), provider

    def test_brightdata_profile(self):
        raw = {"account": "kim", "profile_name": "Kim", "followers": 300, "posts_count": "4"}
        profile = normalize_profile(raw, "ignored", provider="brightdata")

        assert profile.username == "kim"
        assert profile.full_name == "Kim"
        assert profile.followers_count == 300
        assert profile.posts_count == 4

    def test_unknown_provider_uses_default_chains(self):
        profile = normalize_profile({"followers": "3"}, "lee", provider="nope")
        assert profile.followers_count == 3
