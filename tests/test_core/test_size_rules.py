"""Tests for SizeRuleResolver."""

import pytest

from shelfmark.core.errors import InvalidDimensions, NoMatchingSizeRule
from shelfmark.core.size_rules import SizeRuleResolver
from shelfmark.models import SizeBand


class TestSizeRuleResolver:
    """Tests for resolving dimensions to a series."""

    @pytest.mark.asyncio
    async def test_level_height_gives_l_series(self, session, bands):
        resolution = await SizeRuleResolver(session).resolve(12, 21)

        assert resolution.series_name == "gk"
        assert resolution.position == "l"
        assert resolution.series == "lgk"
        assert resolution.size_band_id == bands["gk"].id
        assert (resolution.width_mm, resolution.height_mm) == (120, 210)

    @pytest.mark.asyncio
    async def test_positions_around_threshold(self, session, bands):
        resolver = SizeRuleResolver(session)

        assert (await resolver.resolve_mm(120, 200)).series == "dgk"
        assert (await resolver.resolve_mm(120, 201)).series == "ogk"
        assert (await resolver.resolve_mm(120, 215)).series == "lgk"

    @pytest.mark.asyncio
    async def test_empty_equal_heights_use_defaults(self, session, bands):
        resolution = await SizeRuleResolver(session).resolve_mm(140, 205)
        assert resolution.series == "li"

    @pytest.mark.asyncio
    async def test_band_specific_equal_heights(self, session, bands):
        resolver = SizeRuleResolver(session)

        assert (await resolver.resolve_mm(180, 240)).series == "lrk"
        # 210 is not a level height for this band and is below its threshold
        assert (await resolver.resolve_mm(180, 210)).series == "drk"

    @pytest.mark.asyncio
    async def test_comma_decimal_and_rounding(self, session, bands):
        resolution = await SizeRuleResolver(session).resolve("12,95", "20,05")
        assert resolution.width_mm == 130
        assert resolution.height_mm == 201
        assert resolution.series == "oi"

    @pytest.mark.asyncio
    async def test_greatest_min_width_wins_at_boundaries(self, session, bands):
        resolver = SizeRuleResolver(session)

        assert (await resolver.resolve_mm(129, 150)).series_name == "gk"
        assert (await resolver.resolve_mm(130, 150)).series_name == "i"
        assert (await resolver.resolve_mm(169, 150)).series_name == "ik"
        assert (await resolver.resolve_mm(5000, 150)).series_name == "rk"

    @pytest.mark.asyncio
    async def test_resolution_is_monotonic_in_width(self, session, bands):
        resolver = SizeRuleResolver(session)
        min_widths = {band.name: band.min_width for band in bands.values()}

        previous = 0
        for width in range(100, 200, 3):
            resolution = await resolver.resolve_mm(width, 150)
            assert min_widths[resolution.series_name] >= previous
            previous = min_widths[resolution.series_name]

    @pytest.mark.asyncio
    async def test_narrower_than_any_band(self, session, bands):
        with pytest.raises(NoMatchingSizeRule) as exc_info:
            await SizeRuleResolver(session).resolve_mm(99, 150)

        assert exc_info.value.status_code == 422
        assert exc_info.value.detail["width_mm"] == 99

    @pytest.mark.asyncio
    async def test_max_width_gap_has_no_match(self, session):
        session.add(SizeBand(name="gk", min_width=100, max_width=120, height_threshold=200, equal_heights=[]))
        await session.commit()

        with pytest.raises(NoMatchingSizeRule):
            await SizeRuleResolver(session).resolve_mm(125, 150)

    @pytest.mark.asyncio
    async def test_no_bands(self, session):
        with pytest.raises(NoMatchingSizeRule):
            await SizeRuleResolver(session).resolve(12, 21)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("width, height", [(0, 21), (12, -1), ("abc", 21), (None, 21)])
    async def test_invalid_dimensions(self, session, bands, width, height):
        with pytest.raises(InvalidDimensions):
            await SizeRuleResolver(session).resolve(width, height)
