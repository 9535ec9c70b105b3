"""
eFiscal Notas — Configuration: paths, spreadsheet layout, categorization constants.
"""
import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Paths: override with EFISCAL_DATA_DIR env var for cloud deployment
# ---------------------------------------------------------------------------
_data_dir = Path(os.environ.get("EFISCAL_DATA_DIR", str(Path.home() / "eFiscal")))
BASE_FOLDER = _data_dir
NOTAS_FILE = _data_dir / "notas.csv"

# ---------------------------------------------------------------------------
# Upload limits
# ---------------------------------------------------------------------------
MAX_UPLOAD_MB = int(os.environ.get("EFISCAL_MAX_UPLOAD_MB", "10"))
ACCEPTED_EXTENSIONS = (".xlsx",)

# Store updates are applied in chunks of this size during categorization
CATEGORIZE_BATCH_SIZE = 50

# ---------------------------------------------------------------------------
# Spreadsheet layout: header row of the first sheet
# ---------------------------------------------------------------------------
REQUIRED_HEADERS = [
    "Destino",
    "Data Fornecimento",
    "Nota Fiscal",
    "Origem",
    "Descrição Origem",
    "Material",
    "Descrição",
    "Pedido",
    "Qtd.",
    "Un.",
    "Valor",
    "Fornecimento",
    "Mensagem NF",
]

# A row missing any of these is dropped (0 counts as present)
ROW_REQUIRED_HEADERS = ["Destino", "Data Fornecimento", "Nota Fiscal", "Origem", "Material"]

# Spreadsheet header → internal field name
COLUMN_MAP = {
    "Destino": "destination",
    "Data Fornecimento": "supply_date",
    "Nota Fiscal": "invoice_number",
    "Origem": "origin",
    "Descrição Origem": "origin_description",
    "Material": "material_code",
    "Descrição": "material_description",
    "Pedido": "order_number",
    "Qtd.": "quantity",
    "Un.": "unit",
    "Valor": "value",
    "Fornecimento": "supply_reference",
    "Mensagem NF": "message",
}

# ---------------------------------------------------------------------------
# Spreadsheet date serials (1900 date system)
# ---------------------------------------------------------------------------
SERIAL_MIN = 1
SERIAL_MAX = 100_000
# Serial 60 is the fictitious 29/02/1900; later serials are shifted back one day
SERIAL_LEAP_BUG_THRESHOLD = 59

# ---------------------------------------------------------------------------
# Categorization: standard "remessa" message and its boilerplate clauses
# ---------------------------------------------------------------------------
ICMS_SUBJECT_CLAUSE = "Sujeito a ICMS e Sub.Trib."
ICMS_EXEMPT_CLAUSE = "Isento ou não sujeito a ICMS"

STANDARD_MESSAGE_TEMPLATE = (
    "Remessa: 00{reference}; " + ICMS_SUBJECT_CLAUSE + "; Outras Saídas; Outras Operações de Saída;"
)

# Parts matching any of these (after splitting on ";" and trimming) carry no information
BOILERPLATE_PATTERNS = [
    r"Remessa:\s*\d+",
    r"Sujeito a ICMS e Sub\.Trib\.",
    r"Isento ou não sujeito a ICMS",
    r"Outras Saídas",
    r"Outras Operações de Saída",
    r"Redução da base",
]

# Quality messages encode 5-digit occurrence ids
QUALITY_ID_PATTERN = r"\b\d{5}\b"
QUALITY_ID_SEPARATOR = "-"
RETURN_PART_SEPARATOR = "; "

# ---------------------------------------------------------------------------
# Listing defaults
# ---------------------------------------------------------------------------
DEFAULT_PAGE_LIMIT = 1000

# Columns scanned by the free-text filter
SEARCH_COLUMNS = [
    "destination",
    "invoice_number",
    "origin",
    "origin_description",
    "material_code",
    "material_description",
    "order_number",
    "supply_reference",
    "message",
]
