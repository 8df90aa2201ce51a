"""Tests for the BlogPage data model."""

from datetime import datetime

import pytest

from campusblog.models.page import BlogPage, SeoMeta


def page_payload(**overrides):
    data = {
        "id": 42,
        "date": "2024-01-05T10:00:00",
        "modified": "2024-02-01T08:15:00",
        "slug": "study-tips",
        "status": "publish",
        "link": "https://campusify.io/study-tips/",
        "title": {"rendered": "Study Tips &amp; Tricks"},
        "content": {"rendered": "<p>Read every day.</p>", "protected": False},
        "excerpt": {"rendered": "<p>Short summary</p>", "protected": False},
        "yoast_head_json": {
            "title": "Study Tips - Campusify",
            "description": "How to study",
            "og_title": "Study Tips",
            "og_description": "How to study well",
            "og_image": [
                {"url": "https://campusify.io/wp-content/uploads/cover.png", "width": 1200},
                {"url": "https://campusify.io/wp-content/uploads/second.png"},
            ],
            "canonical": "https://campusify.io/study-tips/",
        },
    }
    data.update(overrides)
    return data


class TestSeoMeta:
    """Tests for SeoMeta."""

    def test_defaults(self):
        seo = SeoMeta()
        assert seo.title is None
        assert seo.og_image == []
        assert seo.og_image_url == ""

    def test_from_dict(self):
        seo = SeoMeta.from_dict(page_payload()["yoast_head_json"])
        assert seo.og_title == "Study Tips"
        assert seo.og_image == [
            "https://campusify.io/wp-content/uploads/cover.png",
            "https://campusify.io/wp-content/uploads/second.png",
        ]
        assert seo.og_image_url == "https://campusify.io/wp-content/uploads/cover.png"

    def test_from_dict_skips_images_without_url(self):
        seo = SeoMeta.from_dict({"og_image": [{"width": 10}, "bogus", {"url": "https://x/a.png"}]})
        assert seo.og_image == ["https://x/a.png"]

    def test_from_dict_null_images(self):
        assert SeoMeta.from_dict({"og_image": None}).og_image == []


class TestBlogPage:
    """Tests for BlogPage."""

    def test_from_dict(self):
        page = BlogPage.from_dict(page_payload())

        assert page.id == 42
        assert page.date == datetime(2024, 1, 5, 10, 0)
        assert page.modified == datetime(2024, 2, 1, 8, 15)
        assert page.slug == "study-tips"
        assert page.title == "Study Tips &amp; Tricks"
        assert page.content == "<p>Read every day.</p>"
        assert page.excerpt == "<p>Short summary</p>"
        assert page.link == "https://campusify.io/study-tips/"
        assert page.status == "publish"
        assert page.og_image_url == "https://campusify.io/wp-content/uploads/cover.png"

    def test_from_dict_without_seo(self):
        data = page_payload()
        del data["yoast_head_json"]
        page = BlogPage.from_dict(data)
        assert page.seo is None
        assert page.og_image_url == ""

    def test_from_dict_missing_excerpt(self):
        data = page_payload(excerpt=None)
        assert BlogPage.from_dict(data).excerpt == ""

    def test_from_dict_plain_string_fields(self):
        page = BlogPage.from_dict(page_payload(title="Plain", content="<p>x</p>"))
        assert page.title == "Plain"
        assert page.content == "<p>x</p>"

    def test_from_dict_timezone_aware_date(self):
        page = BlogPage.from_dict(page_payload(date="2024-01-05T10:00:00+00:00"))
        assert page.date.tzinfo is not None

    def test_from_dict_string_id(self):
        assert BlogPage.from_dict(page_payload(id="7")).id == 7

    def test_missing_id_raises(self):
        data = page_payload()
        del data["id"]
        with pytest.raises(ValueError, match="id"):
            BlogPage.from_dict(data)

    def test_missing_slug_raises(self):
        with pytest.raises(ValueError, match="slug"):
            BlogPage.from_dict(page_payload(slug=""))

    def test_missing_date_raises(self):
        with pytest.raises(ValueError, match="date"):
            BlogPage.from_dict(page_payload(date=None))

    def test_malformed_date_raises(self):
        with pytest.raises(ValueError):
            BlogPage.from_dict(page_payload(date="not a date"))

    @pytest.mark.parametrize(
        "overrides",
        [
            {"title": ["x"]},
            {"content": 5},
            {"excerpt": {"rendered": ["x"]}},
            {"date": 1704448800},
            {"modified": ["2024-01-05"]},
            {"id": [42]},
            {"slug": ["study-tips"]},
        ],
    )
    def test_wrongly_typed_field_raises_value_error(self, overrides):
        with pytest.raises(ValueError):
            BlogPage.from_dict(page_payload(**overrides))

    def test_defaults(self):
        page = BlogPage(
            id=1,
            date=datetime(2024, 1, 1),
            slug="a",
            title="A",
            content="",
        )
        assert page.excerpt == ""
        assert page.status == "publish"
        assert page.modified is None
        assert page.seo is None
