"""Export and import functionality for Time Ledger."""

from time_ledger.export_import.base import Exporter, Importer, default_filename
from time_ledger.export_import.csv_format import CSVExporter
from time_ledger.export_import.excel_format import ExcelExporter
from time_ledger.export_import.json_format import JSONExporter, JSONImporter
from time_ledger.export_import.markdown_format import InvoiceExporter, MarkdownExporter
from time_ledger.export_import.pdf_format import PDFExporter

__all__ = [
    "Exporter",
    "Importer",
    "default_filename",
    "CSVExporter",
    "ExcelExporter",
    "JSONExporter",
    "JSONImporter",
    "InvoiceExporter",
    "MarkdownExporter",
    "PDFExporter",
]
