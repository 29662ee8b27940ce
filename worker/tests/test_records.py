from pathlib import Path

import pytest

from listing_worker.models import Item, Outcome, RunSnapshot, RunStatus, SearchType
from listing_worker.records import load_items, validate_identifier, write_results


def test_load_jan_rows_with_quotes_and_separators(tmp_path: Path) -> None:
    source = tmp_path / "entries.csv"
    source.write_text('JAN,price,stock\n4549957721409,"11,800",5\n"4549957722512",9800,3\n,100,1\n', encoding="utf-8")

    items = load_items(source)

    assert items == [
        Item(identifier="4549957721409", price=11800.0, stock=5),
        Item(identifier="4549957722512", price=9800.0, stock=3),
    ]


def test_load_tab_separated_product_id_column(tmp_path: Path) -> None:
    source = tmp_path / "entries.tsv"
    source.write_text("productId\tprice\tstock\n4974019907609\t5980\t12\n", encoding="utf-8")

    assert load_items(source) == [Item(identifier="4974019907609", price=5980.0, stock=12)]


def test_load_asin_rows_keep_sku_and_search_code(tmp_path: Path) -> None:
    source = tmp_path / "asin.csv"
    source.write_text("SKU,ASIN,price,stock\nSKU-ABC123,B0A1BC2D3E,11800,5\n", encoding="utf-8")

    items = load_items(source, SearchType.ASIN)

    assert items == [Item(identifier="SKU-ABC123", price=11800.0, stock=5, search_code="B0A1BC2D3E")]
    assert items[0].search_term == "B0A1BC2D3E"


def test_unparseable_price_names_the_line(tmp_path: Path) -> None:
    source = tmp_path / "entries.csv"
    source.write_text("JAN,price,stock\n4549957721409,abc,5\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Line 2"):
        load_items(source)


def test_empty_file_has_no_items(tmp_path: Path) -> None:
    source = tmp_path / "empty.csv"
    source.write_text("", encoding="utf-8")

    assert load_items(source) == []


@pytest.mark.parametrize(
    ("identifier", "search_type", "search_code", "expected"),
    [
        ("4549957721409", SearchType.JAN, None, None),
        ("454995772140", SearchType.JAN, None, "JAN must be 13 digits"),
        ("SKU-1", SearchType.ASIN, "B0A1BC2D3E", None),
        ("", SearchType.ASIN, "B0A1BC2D3E", "SKU is required"),
        ("SKU-1", SearchType.ASIN, "B0A1", "ASIN must be 10 alphanumeric characters"),
    ],
)
def test_validate_identifier(identifier, search_type, search_code, expected) -> None:
    assert validate_identifier(identifier, search_type, search_code) == expected


def test_write_results_table(tmp_path: Path) -> None:
    snapshot = RunSnapshot(
        status=RunStatus.ERROR,
        total=3,
        processed=2,
        results=(
            Outcome.success(Item("4549957721409", 11800, 5)),
            Outcome.error("4549957722512", 'Locator "SKU", not found'),
        ),
    )
    target = tmp_path / "result.csv"

    write_results(target, snapshot)

    assert target.read_text(encoding="utf-8").splitlines() == [
        "identifier,price,stock,outcomeKind,message",
        "4549957721409,11800,5,success,Listing registered.",
        '4549957722512,,,error,"Locator ""SKU"", not found"',
    ]
