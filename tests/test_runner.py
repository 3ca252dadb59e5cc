"""Tests for the command line runner."""

from datetime import date
from unittest.mock import patch

import pytest

from conftest import FakeSource, make_deal
from nse_deals.pipeline import DealsResult
from nse_deals.runner import VIEW_COLUMNS, build_groups, main, render_table
from nse_deals.sources.base import FeedResponse

DAY = date(2024, 1, 2)
ARGS = ["--from", "01-01-2024", "--to", "07-01-2024"]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NSE_DEALS_ENV_FILE", "/nonexistent/.env.test")
    for key in ("NSE_DEALS_HIDE_INTRADAY", "NSE_DEALS_DEFAULT_DEAL_TYPE", "NSE_DEALS_DEFAULT_DATE_FILTER"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def fake_source() -> FakeSource:
    deals = [
        make_deal(symbol="ABC", client="Alpha Fund", quantity=1000, price=50.0, day=DAY),
        make_deal(symbol="XYZ", client="Beta Capital", quantity=2000, price=10.0, day=DAY),
    ]
    return FakeSource({"bulk_deals": FeedResponse(deals=deals)})


def test_render_table_aligns_columns() -> None:
    columns = [("NAME", lambda row: row[0]), ("QTY", lambda row: row[1])]
    table = render_table([("A", "1"), ("Longer", "22")], columns)
    assert table.splitlines() == ["NAME    QTY", "A       1", "Longer  22"]


def test_build_groups_date_view_needs_symbol() -> None:
    result = DealsResult(deals=[make_deal(day=DAY)])
    assert len(build_groups(result, "date", "ABC")) == 1
    with pytest.raises(ValueError):
        build_groups(result, "date")
    with pytest.raises(ValueError):
        build_groups(result, "sector")


def test_every_view_has_columns() -> None:
    result = DealsResult(deals=[make_deal(day=DAY)])
    for view, columns in VIEW_COLUMNS.items():
        groups = build_groups(result, view, "ABC")
        assert render_table(groups, columns).count("\n") == 1


def test_main_prints_client_view(fake_source: FakeSource, capsys: pytest.CaptureFixture) -> None:
    with patch("nse_deals.runner.create_sources", return_value=(fake_source, None)):
        exit_code = main([*ARGS, "--deal-type", "bulk_deals", "--view", "client"])

    assert exit_code == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "01-01-2024 to 07-01-2024: 2 deals, 0 intraday, 2 shown"
    assert lines[1].startswith("CLIENT")
    assert lines[2].startswith("Alpha Fund")
    assert "50,000" in lines[2]
    assert lines[3].startswith("Beta Capital")
    assert fake_source.requests == [("bulk_deals", date(2024, 1, 1), date(2024, 1, 7))]


def test_main_sorts_filters_and_limits(fake_source: FakeSource, capsys: pytest.CaptureFixture) -> None:
    with patch("nse_deals.runner.create_sources", return_value=(fake_source, None)):
        exit_code = main(
            [*ARGS, "--deal-type", "bulk_deals", "--sort", "total_bought", "--direction", "desc", "--limit", "1"]
        )

    assert exit_code == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 3
    assert lines[2].startswith("XYZ")


def test_main_lists_individual_deals(fake_source: FakeSource, capsys: pytest.CaptureFixture) -> None:
    with patch("nse_deals.runner.create_sources", return_value=(fake_source, None)):
        exit_code = main([*ARGS, "--deal-type", "bulk_deals", "--view", "deals", "--sort", "quantity"])

    assert exit_code == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[1].split() == ["TYPE", "DATE", "SYMBOL", "CLIENT", "SIDE", "QUANTITY", "PRICE", "REMARKS"]
    assert lines[2].split()[:3] == ["BULK", "02-01-2024", "XYZ"]
    assert "2,000" in lines[2]
    assert lines[3].split()[:3] == ["BULK", "02-01-2024", "ABC"]


@pytest.mark.parametrize(
    "argv",
    [
        ["--from", "07-01-2024", "--to", "01-01-2024"],
        [*ARGS, "--view", "date"],
        [*ARGS, "--sort", "not_a_field"],
    ],
)
def test_main_rejects_bad_input(fake_source: FakeSource, argv: list) -> None:
    with patch("nse_deals.runner.create_sources", return_value=(fake_source, None)):
        assert main(argv) == 2
