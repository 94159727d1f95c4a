"""Tests for the ICE index calculator."""

from __future__ import annotations

from collections.abc import Callable

import polars as pl
import pytest

from segflow.core.exceptions import TractShapeError
from segflow.core.indices import (
    IndexBatch,
    compute_index_frame,
    compute_indices,
    compute_tract_indices,
    indices_to_frame,
)
from segflow.core.records import COUNT_COLUMNS
from segflow.core.schema import INDEX_COLUMNS, SkippedTract, TractRawCounts
from segflow.core.tract_frame import TractFrame

MakeRaw = Callable[..., TractRawCounts]


class TestComputeTractIndices:
    """Tests for the per-tract calculation."""

    def test_ice_race_example(self, make_raw_counts: MakeRaw) -> None:
        """800 white non-Hispanic residents out of 1000 gives ice_race 0.6."""
        result = compute_tract_indices(
            make_raw_counts(total_population=1000, total_white_nonhispanic=800)
        )
        assert result.ice_race == pytest.approx(0.6)

    def test_ice_race_income_example(self, raw_counts: TractRawCounts) -> None:
        """(150 - (100 - 40)) / 500 = 0.18."""
        result = compute_tract_indices(raw_counts)
        assert result.ice_race_income == pytest.approx(0.18)

    def test_ice_income(self, raw_counts: TractRawCounts) -> None:
        """High minus low households over total population."""
        result = compute_tract_indices(raw_counts)
        assert result.ice_income == pytest.approx((150 - 100) / 1000)

    def test_proportions(self, raw_counts: TractRawCounts) -> None:
        """Poverty rate and racial shares."""
        result = compute_tract_indices(raw_counts)
        assert result.prop_in_poverty == pytest.approx(120 / 950)
        assert result.prop_black == pytest.approx(0.1)
        assert result.prop_hispanic == pytest.approx(0.05)
        assert result.prop_white_nonhispanic == pytest.approx(0.8)

    def test_carries_identity_and_population(self, raw_counts: TractRawCounts) -> None:
        """geo_id and total_population pass through unchanged."""
        result = compute_tract_indices(raw_counts)
        assert result.geo_id == raw_counts.geo_id
        assert result.total_population == raw_counts.total_population

    @pytest.mark.parametrize(
        ("population", "white_nh"),
        [(1000, 800), (1000, 0), (1000, 1000), (3, 1), (7919, 4211)],
    )
    def test_ice_race_matches_white_share(
        self, make_raw_counts: MakeRaw, population: int, white_nh: int
    ) -> None:
        """ice_race equals 2 * prop_white_nonhispanic - 1."""
        result = compute_tract_indices(
            make_raw_counts(
                total_population=population,
                total_white_nonhispanic=white_nh,
                total_black=0,
                total_hispanic=0,
            )
        )
        assert result.prop_white_nonhispanic is not None
        assert result.ice_race == pytest.approx(2 * result.prop_white_nonhispanic - 1)

    @pytest.mark.parametrize(
        "overrides",
        [
            {},
            {"total_white_nonhispanic": 0, "total_black": 900},
            {
                "household_income_brackets_all": (100, 100, 100, 100, 0, 0, 0, 0),
                "household_income_brackets_white_nonhispanic": (0,) * 8,
                "household_income_total": 400,
            },
            {
                "household_income_brackets_all": (0, 0, 0, 0, 100, 100, 100, 100),
                "household_income_brackets_white_nonhispanic": (0, 0, 0, 0, 100, 100, 100, 100),
                "household_income_total": 400,
            },
        ],
    )
    def test_consistent_counts_stay_in_range(self, make_raw_counts: MakeRaw, overrides) -> None:
        """Consistent inputs give ICE values in [-1, 1] and proportions in [0, 1]."""
        result = compute_tract_indices(make_raw_counts(**overrides))

        for name in ("ice_race_income", "ice_race", "ice_income"):
            value = getattr(result, name)
            assert value is not None
            assert -1.0 <= value <= 1.0
        for name in ("prop_in_poverty", "prop_black", "prop_hispanic", "prop_white_nonhispanic"):
            value = getattr(result, name)
            assert value is not None
            assert 0.0 <= value <= 1.0

    def test_zero_population(self, make_raw_counts: MakeRaw) -> None:
        """Zero population leaves population ratios undefined but not ice_race_income."""
        result = compute_tract_indices(
            make_raw_counts(
                total_population=0,
                total_black=0,
                total_hispanic=0,
                total_white_nonhispanic=0,
            )
        )

        assert result.ice_income is None
        assert result.ice_race is None
        assert result.prop_black is None
        assert result.prop_hispanic is None
        assert result.prop_white_nonhispanic is None
        assert result.ice_race_income == pytest.approx(0.18)
        assert result.prop_in_poverty == pytest.approx(120 / 950)
        assert result.total_population == 0

    def test_zero_household_total(self, make_raw_counts: MakeRaw) -> None:
        """Zero households only affects ice_race_income."""
        result = compute_tract_indices(make_raw_counts(household_income_total=0))

        assert result.ice_race_income is None
        assert result.undefined_fields == ["ice_race_income"]
        assert result.ice_race == pytest.approx(0.6)

    def test_zero_poverty_denominator(self, make_raw_counts: MakeRaw) -> None:
        """in_poverty=50 with a zero denominator leaves prop_in_poverty undefined."""
        result = compute_tract_indices(
            make_raw_counts(in_poverty=50, total_for_poverty_estimate=0)
        )

        assert result.prop_in_poverty is None
        assert result.undefined_fields == ["prop_in_poverty"]
        assert result.is_partial

    def test_inconsistent_counts_are_not_clamped(self, make_raw_counts: MakeRaw) -> None:
        """White low-income above all low-income pushes ice_race_income past 1."""
        result = compute_tract_indices(
            make_raw_counts(
                household_income_brackets_all=(10, 10, 10, 10, 100, 100, 100, 100),
                household_income_brackets_white_nonhispanic=(30, 30, 20, 10, 100, 100, 100, 150),
                household_income_total=400,
            )
        )
        # nonwhite low income = 40 - 90 = -50; (450 + 50) / 400
        assert result.ice_race_income == pytest.approx(1.25)

    def test_monotonic_in_white_high_income(self, make_raw_counts: MakeRaw) -> None:
        """More high-income white non-Hispanic households raise ice_race_income."""
        base = compute_tract_indices(make_raw_counts())
        more = compute_tract_indices(
            make_raw_counts(
                household_income_brackets_white_nonhispanic=(20, 10, 5, 5, 60, 40, 30, 30),
            )
        )

        assert base.ice_race_income is not None
        assert more.ice_race_income is not None
        assert more.ice_race_income > base.ice_race_income

    def test_deterministic(self, raw_counts: TractRawCounts) -> None:
        """Repeated calls give equal records."""
        assert compute_tract_indices(raw_counts) == compute_tract_indices(raw_counts)

    def test_bad_bracket_shape_raises(self) -> None:
        """A record bypassing validation with 7 brackets is rejected."""
        raw = TractRawCounts.model_construct(
            geo_id="36005000100",
            total_population=10,
            total_black=0,
            total_hispanic=0,
            total_white_nonhispanic=10,
            household_income_total=5,
            household_income_brackets_all=(1,) * 7,
            household_income_brackets_white_nonhispanic=(1,) * 8,
            in_poverty=0,
            total_for_poverty_estimate=10,
        )

        with pytest.raises(TractShapeError, match="household_income_brackets_all"):
            compute_tract_indices(raw)


class TestComputeIndices:
    """Tests for batch computation and accounting."""

    def test_preserves_order(self, make_raw_counts: MakeRaw) -> None:
        """Output order follows input order."""
        ids = ["36005000300", "36005000100", "36005000200"]
        batch = compute_indices(make_raw_counts(geo_id=g) for g in ids)

        assert [idx.geo_id for idx in batch.indices] == ids

    def test_skipped_tracts_do_not_abort(self, make_raw_counts: MakeRaw) -> None:
        """Skipped tracts are accounted for and the rest are computed."""
        skipped = SkippedTract(
            geo_id="36005000200", reason="missing_field", fields=("total_hispanic",)
        )
        batch = compute_indices(
            [make_raw_counts(geo_id="36005000100"), skipped, make_raw_counts(geo_id="36005000300")]
        )

        assert [idx.geo_id for idx in batch.indices] == ["36005000100", "36005000300"]
        assert batch.skipped == [skipped]
        assert batch.n_total == 3

    def test_partial_accounting(self, make_raw_counts: MakeRaw) -> None:
        """Tracts with undefined fields are listed as partial."""
        batch = compute_indices(
            [
                make_raw_counts(geo_id="36005000100"),
                make_raw_counts(geo_id="36005000200", total_for_poverty_estimate=0),
            ]
        )

        assert batch.partial == ["36005000200"]
        assert batch.undefined_counts() == {"prop_in_poverty": 1}

    def test_shape_error_aborts_batch(self, make_raw_counts: MakeRaw) -> None:
        """A malformed record fails the whole batch."""
        bad = TractRawCounts.model_construct(
            **{
                **make_raw_counts().model_dump(),
                "household_income_brackets_white_nonhispanic": (1, 2, 3),
            }
        )

        with pytest.raises(TractShapeError):
            compute_indices([make_raw_counts(), bad])

    def test_summary(self, make_raw_counts: MakeRaw) -> None:
        """Summary reports computed, partial and skipped tracts."""
        batch = compute_indices(
            [
                make_raw_counts(geo_id="36005000100", household_income_total=0),
                SkippedTract(geo_id="36005000200", reason="missing_field", fields=("in_poverty",)),
            ]
        )
        summary = batch.summary()

        assert "1/2 tracts computed" in summary
        assert "Partial: 1" in summary
        assert "Skipped: 1" in summary
        assert "ice_race_income: 1" in summary
        assert "36005000200: missing_field (in_poverty)" in summary

    def test_empty_batch(self) -> None:
        """An empty input yields an empty batch."""
        batch = compute_indices([])

        assert isinstance(batch, IndexBatch)
        assert batch.indices == []
        assert batch.n_total == 0


class TestIndexFrame:
    """Tests for table-level computation."""

    def test_indices_to_frame_column_order(self, raw_counts: TractRawCounts) -> None:
        """Columns follow the export order with geo_id first."""
        df = indices_to_frame([compute_tract_indices(raw_counts)])

        assert tuple(df.columns) == INDEX_COLUMNS
        assert df.columns[0] == "geo_id"

    def test_indices_to_frame_empty(self) -> None:
        """An empty sequence still yields the full schema."""
        df = indices_to_frame([])

        assert len(df) == 0
        assert tuple(df.columns) == INDEX_COLUMNS

    def test_idempotent_output(self, raw_frame: TractFrame) -> None:
        """Two runs over the same table serialize to identical bytes."""
        first, _ = compute_index_frame(raw_frame)
        second, _ = compute_index_frame(raw_frame)

        assert first.collect().write_csv() == second.collect().write_csv()

    def test_compute_index_frame(self, raw_frame: TractFrame) -> None:
        """Populated and empty tracts are computed, the incomplete one is skipped."""
        indices, batch = compute_index_frame(raw_frame)
        df = indices.collect()

        assert df["geo_id"].to_list() == ["36005000100", "36005000200"]
        assert [s.geo_id for s in batch.skipped] == ["36005000300"]
        assert batch.skipped[0].fields == ("total_hispanic",)
        assert batch.partial == ["36005000200"]
        assert df["ice_race"].to_list()[1] is None
        assert indices.metadata == raw_frame.metadata

    def test_missing_column_is_fatal(self, raw_frame: TractFrame) -> None:
        """A raw table without a required column fails the run."""
        with pytest.raises(TractShapeError, match="in_poverty"):
            compute_index_frame(raw_frame.select("geo_id", "total_population"))

    def test_invalid_count_is_tract_local(self, raw_rows, tract_metadata) -> None:
        """A negative count skips its tract and the rest of the table is computed."""
        rows = [dict(raw_rows[0]), dict(raw_rows[0], geo_id="36005000400", total_black=-5)]
        schema = {"geo_id": pl.Utf8, **{col: pl.Int64 for col in COUNT_COLUMNS}}
        frame = TractFrame.from_rows(rows, tract_metadata, schema=schema)

        indices, batch = compute_index_frame(frame)

        assert indices.collect()["geo_id"].to_list() == ["36005000100"]
        assert len(batch.skipped) == 1
        assert batch.skipped[0].geo_id == "36005000400"
        assert batch.skipped[0].reason == "invalid_value"
        assert batch.skipped[0].fields == ("total_black",)
