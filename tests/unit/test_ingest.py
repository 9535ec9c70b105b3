import datetime as dt

import pytest

from efiscal.config import REQUIRED_HEADERS
from efiscal.data.ingest import ingest, parse_workbook
from efiscal.data.schemas import Category
from efiscal.errors import ParseError, StructureError
from tests.helpers import STANDARD_MESSAGE, build_workbook, row_values, sample_row

NOW = dt.datetime(2024, 3, 6, 14, 5, 9)


def test_parse_valid_row_into_canonical_record() -> None:
    buffer = build_workbook([row_values(sample_row())])

    result = parse_workbook(buffer, now=NOW)

    assert result.rows_read == 1
    assert result.dropped == []
    [record] = result.records
    assert record.destination == "CD01"
    assert record.supply_date == "2024-03-05"
    assert record.invoice_number == "123456"
    assert record.origin == "L001"
    assert record.origin_description == "Loja Centro"
    assert record.material_code == "MAT 10"
    assert record.quantity == 2.5
    assert record.value == 1234.56
    assert record.supply_reference == "12345"
    assert record.message == STANDARD_MESSAGE
    assert record.upload_timestamp == "2024-03-06 14:05:09"
    assert record.dedup_key == "2024-03-05_123456_L001_MAT_10"
    assert record.treated is False
    assert record.category is Category.STANDARD
    assert record.id is None


def test_ingest_returns_records_only() -> None:
    buffer = build_workbook([row_values(sample_row()), row_values(sample_row(Material="MAT 11"))])
    records = ingest(buffer)
    assert [r.material_code for r in records] == ["MAT 10", "MAT 11"]


def test_numeric_cells_keep_spreadsheet_form() -> None:
    row = sample_row(**{"Nota Fiscal": 123456, "Data Fornecimento": 45000, "Qtd.": 4, "Valor": 99.9})
    [record] = ingest(build_workbook([row_values(row)]))
    assert record.invoice_number == "123456"
    assert record.supply_date == "2023-03-15"
    assert record.quantity == 4.0
    assert record.value == 99.9


def test_date_formatted_cell() -> None:
    row = sample_row(**{"Data Fornecimento": dt.datetime(2024, 1, 31)})
    [record] = ingest(build_workbook([row_values(row)]))
    assert record.supply_date == "2024-01-31"


def test_headers_in_any_order_and_trimmed() -> None:
    headers = list(reversed(REQUIRED_HEADERS))
    padded = [f"  {h} " for h in headers]
    buffer = build_workbook([row_values(sample_row(), headers)], headers=padded)
    [record] = ingest(buffer)
    assert record.invoice_number == "123456"


def test_extra_columns_are_ignored() -> None:
    headers = REQUIRED_HEADERS + ["Observação"]
    row = row_values(sample_row(), REQUIRED_HEADERS) + ["ignorar"]
    [record] = ingest(build_workbook([row], headers=headers))
    assert record.destination == "CD01"


def test_missing_headers_name_every_missing_column() -> None:
    headers = [h for h in REQUIRED_HEADERS if h not in ("Valor", "Mensagem NF")]
    buffer = build_workbook([["x"] * len(headers)], headers=headers)

    with pytest.raises(StructureError) as excinfo:
        parse_workbook(buffer)

    assert excinfo.value.missing_headers == ["Valor", "Mensagem NF"]
    assert "Valor" in str(excinfo.value)
    assert "Mensagem NF" in str(excinfo.value)


def test_header_names_are_case_sensitive() -> None:
    headers = ["destino" if h == "Destino" else h for h in REQUIRED_HEADERS]
    with pytest.raises(StructureError) as excinfo:
        parse_workbook(build_workbook([row_values(sample_row())], headers=headers))
    assert excinfo.value.missing_headers == ["Destino"]


def test_empty_sheet_is_a_structure_error() -> None:
    with pytest.raises(StructureError):
        parse_workbook(build_workbook([], headers=[]))


def test_header_only_sheet_is_a_parse_error() -> None:
    with pytest.raises(ParseError):
        parse_workbook(build_workbook([]))


def test_unreadable_buffer_is_a_parse_error() -> None:
    with pytest.raises(ParseError):
        parse_workbook(b"definitely not a workbook")


def test_rows_missing_required_fields_are_dropped() -> None:
    rows = [
        row_values(sample_row()),
        row_values(sample_row(Material=None)),
        row_values(sample_row(Origem="   ")),
        row_values(sample_row(Material="MAT 12")),
    ]

    result = parse_workbook(build_workbook(rows))

    assert result.rows_read == 4
    assert [r.material_code for r in result.records] == ["MAT 10", "MAT 12"]
    assert [(d.row_number, d.missing_fields) for d in result.dropped] == [
        (3, ("Material",)),
        (4, ("Origem",)),
    ]


def test_zero_counts_as_present() -> None:
    [record] = ingest(build_workbook([row_values(sample_row(Destino=0))]))
    assert record.destination == "0"


def test_optional_columns_may_be_empty() -> None:
    row = sample_row(**{"Mensagem NF": None, "Valor": None, "Qtd.": None, "Pedido": None})
    [record] = ingest(build_workbook([row_values(row)]))
    assert record.message == ""
    assert record.value == 0.0
    assert record.quantity == 0.0
    assert record.order_number == ""


def test_unresolvable_dates_drop_the_row() -> None:
    rows = [
        row_values(sample_row(**{"Data Fornecimento": "32/13/2024"})),
        row_values(sample_row(**{"Data Fornecimento": 250000})),
        row_values(sample_row(Material="MAT 99")),
    ]

    result = parse_workbook(build_workbook(rows))

    assert [r.material_code for r in result.records] == ["MAT 99"]
    assert len(result.dropped) == 2
    assert all(d.reason.startswith("unresolvable supply date") for d in result.dropped)


def test_unparsable_value_becomes_zero_without_dropping() -> None:
    [record] = ingest(build_workbook([row_values(sample_row(Valor="a combinar"))]))
    assert record.value == 0.0


def test_blank_lines_are_skipped() -> None:
    rows = [row_values(sample_row()), [None] * len(REQUIRED_HEADERS), row_values(sample_row(Material="B"))]
    result = parse_workbook(build_workbook(rows))
    assert result.rows_read == 2
    assert result.dropped == []


def test_duplicate_keys_within_upload_are_reported_not_removed() -> None:
    rows = [row_values(sample_row()), row_values(sample_row(Pedido="other order"))]

    result = parse_workbook(build_workbook(rows))

    assert len(result.records) == 2
    assert result.batch_duplicate_keys == ["2024-03-05_123456_L001_MAT_10"]


def test_blank_rows_above_the_header_are_skipped() -> None:
    rows = [row_values(sample_row()), row_values(sample_row(Material=None))]

    result = parse_workbook(build_workbook(rows, blank_rows_above=2))

    assert [r.material_code for r in result.records] == ["MAT 10"]
    # Header on sheet row 3, data on rows 4 and 5
    assert [(d.row_number, d.missing_fields) for d in result.dropped] == [(5, ("Material",))]


def test_sheet_of_blank_rows_is_a_structure_error() -> None:
    with pytest.raises(StructureError):
        parse_workbook(build_workbook([[None, None]], headers=[None, None]))
