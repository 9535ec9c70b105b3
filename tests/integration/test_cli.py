from pathlib import Path

from efiscal.cli import main
from efiscal.data.store import NotaStore
from tests.helpers import build_workbook, row_values, sample_row


def _write_workbook(tmp_path: Path) -> Path:
    path = tmp_path / "notas.xlsx"
    path.write_bytes(build_workbook([
        row_values(sample_row()),
        row_values(sample_row(Material="MAT 11", **{"Mensagem NF": "Avaria;"})),
    ]))
    return path


def test_ingest_then_categorize(tmp_path: Path, capsys) -> None:
    store_path = tmp_path / "store" / "notas.csv"
    workbook = _write_workbook(tmp_path)

    assert main(["--store", str(store_path), "ingest", str(workbook)]) == 0
    assert NotaStore(store_path).load().untreated_count() == 2

    assert main(["--store", str(store_path), "categorize"]) == 0
    assert NotaStore(store_path).load().category_counts() == {
        "standard": 0,
        "quality": 0,
        "return": 1,
        "unidentified": 1,
    }

    assert main(["--store", str(store_path), "status"]) == 0
    assert "Untreated:" in capsys.readouterr().out


def test_dry_run_leaves_store_untouched(tmp_path: Path) -> None:
    store_path = tmp_path / "notas.csv"
    assert main(["--store", str(store_path), "ingest", str(_write_workbook(tmp_path)), "--dry-run"]) == 0
    assert not store_path.exists()


def test_ingest_missing_file(tmp_path: Path) -> None:
    assert main(["--store", str(tmp_path / "notas.csv"), "ingest", str(tmp_path / "nope.xlsx")]) == 1


def test_no_command_prints_help(capsys) -> None:
    assert main([]) == 0
    assert "usage" in capsys.readouterr().out.lower()
