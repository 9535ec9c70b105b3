"""Test data builders: in-memory workbooks, sample rows and canonical records."""
import io

from openpyxl import Workbook

from efiscal.config import REQUIRED_HEADERS
from efiscal.data.normalize import make_dedup_key
from efiscal.data.schemas import CanonicalRecord

STANDARD_MESSAGE = (
    "Remessa: 0012345; Sujeito a ICMS e Sub.Trib.; Outras Saídas; Outras Operações de Saída;"
)


def build_workbook(rows: list[list], headers: list | None = None, blank_rows_above: int = 0) -> bytes:
    """Serialize a header row plus data rows as .xlsx bytes."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Notas"
    header_row = list(REQUIRED_HEADERS if headers is None else headers)
    for _ in range(blank_rows_above):
        ws.append([None] * len(header_row))
    ws.append(header_row)
    for row in rows:
        ws.append(row)
    out = io.BytesIO()
    wb.save(out)
    return out.getvalue()


def sample_row(**overrides) -> dict:
    """One valid spreadsheet row keyed by header."""
    row = {
        "Destino": "CD01",
        "Data Fornecimento": "05/03/2024",
        "Nota Fiscal": "123456",
        "Origem": "L001",
        "Descrição Origem": "Loja Centro",
        "Material": "MAT 10",
        "Descrição": "Caixa organizadora",
        "Pedido": "4500001234",
        "Qtd.": "2,5",
        "Un.": "UN",
        "Valor": "R$ 1.234,56",
        "Fornecimento": "12345",
        "Mensagem NF": STANDARD_MESSAGE,
    }
    row.update(overrides)
    return row


def row_values(row: dict, headers: list | None = None) -> list:
    return [row.get(h) for h in (headers or REQUIRED_HEADERS)]


def make_record(**overrides) -> CanonicalRecord:
    fields = {
        "destination": "CD01",
        "supply_date": "2024-03-05",
        "invoice_number": "NF1",
        "origin": "L1",
        "origin_description": "Loja 1",
        "material_code": "M1",
        "material_description": "Material 1",
        "order_number": "P1",
        "quantity": 1.0,
        "unit": "UN",
        "value": 10.0,
        "supply_reference": "12345",
        "message": "",
        "upload_timestamp": "2024-03-06 10:00:00",
    }
    fields.update(overrides)
    fields.setdefault(
        "dedup_key",
        make_dedup_key(
            fields["supply_date"], fields["invoice_number"], fields["origin"], fields["material_code"]
        ),
    )
    return CanonicalRecord(**fields)


