import threading

import pytest

from efiscal.data.schemas import Category, NotaFilter
from efiscal.data.store import NotaStore
from efiscal.errors import NoValidRecordsError, StructureError
from efiscal.operations import categorize_pending, import_workbook
from tests.helpers import build_workbook, make_record, row_values, sample_row


def _workbook() -> bytes:
    quality = "Ocorrências 22222 11111"
    return build_workbook([
        row_values(sample_row(Material="MAT 1", **{"Mensagem NF": quality})),
        row_values(sample_row(Material="MAT 2", **{"Mensagem NF": quality})),
        row_values(sample_row(Material="MAT 3", **{"Nota Fiscal": "777", "Mensagem NF": "Cliente recusou;"})),
        row_values(sample_row(Material="MAT 4", **{"Nota Fiscal": "888"})),
        row_values(sample_row(Material=None)),
    ])


def test_import_inserts_new_records_and_persists(store: NotaStore) -> None:
    outcome = import_workbook(store, _workbook())

    assert outcome.processed == 4
    assert outcome.new == 4
    assert outcome.duplicates == 0
    assert outcome.dropped == 1
    assert store.path.exists()
    assert NotaStore(store.path).load().row_count() == 4


def test_second_import_of_same_file_is_all_duplicates(store: NotaStore) -> None:
    import_workbook(store, _workbook())

    outcome = import_workbook(store, _workbook())

    assert outcome.new == 0
    assert outcome.duplicates == 4
    assert store.row_count() == 4


def test_import_without_valid_rows(store: NotaStore) -> None:
    buffer = build_workbook([row_values(sample_row(Origem=None))])
    with pytest.raises(NoValidRecordsError) as excinfo:
        import_workbook(store, buffer)
    assert excinfo.value.details == {"rows_read": 1, "dropped": 1}
    assert store.row_count() == 0


def test_import_propagates_structure_errors(store: NotaStore) -> None:
    with pytest.raises(StructureError):
        import_workbook(store, build_workbook([["x"]], headers=["Destino"]))


def test_categorize_pending_updates_store(store: NotaStore) -> None:
    import_workbook(store, _workbook())

    run = categorize_pending(store)

    assert run.updated == 4
    assert run.summary.processed == 4
    assert run.summary.quality == 2
    assert run.summary.returned == 1
    assert run.summary.unidentified == 1
    assert run.summary.reorganized == 2
    assert store.untreated_count() == 0

    quality, _ = store.query(NotaFilter(category=Category.QUALITY))
    assert sorted(r.message for r in quality) == ["11111", "22222"]

    reloaded = NotaStore(store.path).load()
    assert reloaded.untreated_count() == 0


def test_categorize_pending_with_empty_backlog(store: NotaStore) -> None:
    run = categorize_pending(store)
    assert run.updated == 0
    assert run.summary.processed == 0
    assert run.results == []


def test_categorize_while_inserting_keeps_store_consistent(store: NotaStore) -> None:
    store.insert([make_record(invoice_number=f"NF{i}", message="Avaria;") for i in range(2000)])
    errors: list[Exception] = []

    def categorize_repeatedly() -> None:
        try:
            for _ in range(30):
                categorize_pending(store, persist=False)
        except Exception as exc:
            errors.append(exc)

    worker = threading.Thread(target=categorize_repeatedly)
    worker.start()
    for i in range(300):
        store.insert([make_record(invoice_number=f"NEW{i}", message="Avaria;")])
    worker.join()

    assert errors == []
    assert store.row_count() == 2300
    assert store.df["id"].is_unique

    categorize_pending(store, persist=False)
    assert store.untreated_count() == 0
    assert store.category_counts()["return"] == 2300
