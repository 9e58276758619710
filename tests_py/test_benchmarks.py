from __future__ import annotations

import pytest

from streamey import render_sync

from streamey_testutils.profile_entrypoint import NAV_ITEM_VARS
from streamey_testutils.profile_entrypoint import PAGE_WITH_NAV_VARS
from streamey_testutils.profile_entrypoint import nav_item
from streamey_testutils.profile_entrypoint import page_with_nav
from streamey_testutils.profile_entrypoint import run_render_profile_nested
from streamey_testutils.profile_entrypoint import run_render_profile_simple


class TestProfileEntrypoint:

    def test_nav_item(self):
        """The profiled components must actually render what we expect
        them to; otherwise, we'd be benchmarking the failure path.
        """
        assert render_sync(nav_item, NAV_ITEM_VARS) == (
            '<li><a href="/home" class="navbar">Home</a></li>')

    def test_page_with_nav(self):
        result = render_sync(page_with_nav, PAGE_WITH_NAV_VARS)
        assert result.count('<li><a href="/home"') == 5
        assert '<title>My benchmark page</title>' in result
        assert 'lorem ipsum' in result

    @pytest.mark.benchmark
    def test_simple(self):
        run_render_profile_simple(1000)

    @pytest.mark.benchmark
    def test_nested(self):
        run_render_profile_nested(1000)
