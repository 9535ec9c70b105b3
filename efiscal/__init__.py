"""eFiscal Notas: invoice spreadsheet ingestion and categorization."""

__version__ = "1.0.0"
