"""Tests for appcatalog.catalog.models."""

from __future__ import annotations

import pytest

from appcatalog.catalog.models import Application, ApplicationList, ApplicationRelease, Filter, Pagination
from appcatalog.core.errors import ValidationError


class TestFilter:
    def test_defaults(self):
        f = Filter()
        assert (f.limit, f.offset, f.full_match) == (20, 0, False)
        assert f.has_search is False

    @pytest.mark.parametrize("limit", [0, -5])
    def test_non_positive_limit(self, limit):
        with pytest.raises(ValidationError, match="limit"):
            Filter(limit=limit)

    def test_negative_offset(self):
        with pytest.raises(ValidationError, match="offset"):
            Filter(offset=-1)

    def test_blank_search_is_no_search(self):
        assert Filter(search_query="   ").has_search is False
        assert Filter(search_query="notes").has_search is True


class TestApplicationFromDict:
    def test_parses_releases_and_ignores_unknown(self):
        app = Application.from_dict(
            {
                "name": "Notes",
                "type": "android",
                "category": "tools",
                "tags": ["a"],
                "bogus": True,
                "releases": [{"version": "1.0", "release_type": "beta", "unknown": 1}],
            }
        )
        assert app.name == "Notes"
        assert app.tags == ["a"]
        assert app.is_free is None
        assert len(app.releases) == 1
        assert isinstance(app.releases[0], ApplicationRelease)
        assert app.releases[0].release_type == "beta"

    def test_missing_releases(self):
        assert Application.from_dict({"name": "x"}).releases == []

    def test_default_lists_not_shared(self):
        a, b = Application(), Application()
        a.tags.append("x")
        assert b.tags == []


class TestApplicationList:
    def test_to_dict(self):
        listing = ApplicationList(
            applications=[Application(id=1, name="a")],
            pagination=Pagination(limit=10, offset=0, count=1, size=1),
        )
        d = listing.to_dict()
        assert d["pagination"] == {"limit": 10, "offset": 0, "count": 1, "size": 1}
        assert d["applications"][0]["name"] == "a"
        assert d["applications"][0]["releases"] == []
