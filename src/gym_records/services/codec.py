"""Interchange codec: dataset snapshot <-> serialized export formats.

Only the JSON encoding round-trips. CSV and the HTML "excel" document are
presentation formats for people and spreadsheet applications; they carry
member and payment tables and cannot be decoded back.
"""

import csv
import html
import io
import json
from collections.abc import Callable
from typing import Any

from gym_records.exceptions import UnsupportedImportFormatError
from gym_records.models.export_import import ExportFormat
from gym_records.models.snapshot import DatasetSnapshot
from gym_records.utils.formatting import format_date, format_number
from gym_records.utils.validators import validate_export_format

MEDIA_TYPES: dict[ExportFormat, str] = {
    ExportFormat.JSON: "application/json",
    ExportFormat.CSV: "text/csv;charset=utf-8",
    ExportFormat.EXCEL: "application/vnd.ms-excel",
}

FILE_EXTENSIONS: dict[ExportFormat, str] = {
    ExportFormat.JSON: "json",
    ExportFormat.CSV: "csv",
    ExportFormat.EXCEL: "xls",
}

CURRENCY_SUFFIX = "دج"

Column = tuple[str, Callable[[dict[str, Any]], str]]


def _text(field: str) -> Callable[[dict[str, Any]], str]:
    return lambda record: "" if record.get(field) is None else str(record.get(field))


def _date(field: str) -> Callable[[dict[str, Any]], str]:
    return lambda record: format_date(record.get(field))


MEMBER_COLUMNS: list[Column] = [
    ("الاسم", _text("name")),
    ("حالة العضوية", _text("membershipStatus")),
    ("آخر حضور", _date("lastAttendance")),
    ("رقم الهاتف", _text("phoneNumber")),
    ("البريد الإلكتروني", _text("email")),
    ("نوع الاشتراك", _text("subscriptionType")),
    ("الحصص المتبقية", lambda record: str(record.get("sessionsRemaining") or 0)),
    ("حالة الدفع", _text("paymentStatus")),
]

PAYMENT_COLUMNS: list[Column] = [
    ("المبلغ", lambda record: format_number(record.get("amount"))),
    ("التاريخ", _date("date")),
    ("نوع الاشتراك", _text("subscriptionType")),
    ("طريقة الدفع", _text("paymentMethod")),
    ("الحالة", _text("status")),
    ("رقم الفاتورة", _text("invoiceNumber")),
]

# (category, section title, columns)
SECTIONS: list[tuple[str, str, list[Column]]] = [
    ("members", "الأعضاء", MEMBER_COLUMNS),
    ("payments", "المدفوعات", PAYMENT_COLUMNS),
]

EXCEL_STYLE = """
    table { border-collapse: collapse; width: 100%; margin-bottom: 20px; }
    th, td { border: 1px solid #ddd; padding: 8px; text-align: right; }
    th { background-color: #f2f2f2; font-weight: bold; }
    h2 { color: #333; }
"""


class InterchangeCodec:
    """Convert snapshots to and from their serialized forms."""

    def encode(self, snapshot: DatasetSnapshot, format: str) -> str:
        """Serialize a snapshot.

        Args:
            snapshot: Snapshot to encode
            format: "json", "csv" or "excel"

        Returns:
            Encoded text

        Raises:
            UnsupportedFormatError: If the format is not known
        """
        export_format = validate_export_format(format)

        if export_format is ExportFormat.JSON:
            return self._encode_json(snapshot)
        if export_format is ExportFormat.CSV:
            return self._encode_csv(snapshot)
        return self._encode_excel(snapshot)

    def decode(self, text: str, source_extension: str) -> dict[str, Any]:
        """Parse an import file into its raw payload.

        Only JSON is decodable. The payload is returned undigested so that
        structural validation can report every defect.

        Args:
            text: File content
            source_extension: File extension or name ("json", ".json", "export.json")

        Returns:
            Decoded payload

        Raises:
            UnsupportedImportFormatError: For CSV, unknown extensions or invalid JSON
        """
        extension = self.normalize_extension(source_extension)

        if extension == "csv":
            raise UnsupportedImportFormatError(
                "CSV import not yet supported. Please use a JSON file"
            )
        if extension != "json":
            raise UnsupportedImportFormatError(
                f"Unsupported file format: '{source_extension}'. Please use a JSON file"
            )

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise UnsupportedImportFormatError(f"Invalid JSON content: {e}") from e

    def media_type(self, format: str) -> str:
        """MIME type of an export format."""
        return MEDIA_TYPES[validate_export_format(format)]

    def file_extension(self, format: str) -> str:
        """File extension used when saving an export format."""
        return FILE_EXTENSIONS[validate_export_format(format)]

    @staticmethod
    def normalize_extension(source: str) -> str:
        """Reduce "x.JSON", ".json" or "json" to "json"."""
        source = (source or "").strip().lower()
        if "." in source:
            source = source.rsplit(".", 1)[1]
        return source

    def _encode_json(self, snapshot: DatasetSnapshot) -> str:
        return json.dumps(snapshot.to_payload(), indent=2, ensure_ascii=False)

    def _encode_csv(self, snapshot: DatasetSnapshot) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")

        for category, title, columns in SECTIONS:
            records = getattr(snapshot.data, category)
            if not records:
                continue

            buffer.write(f"=== {title} ===\n")
            buffer.write(",".join(label for label, _ in columns) + "\n")
            for record in records:
                writer.writerow([getter(record) for _, getter in columns])
            buffer.write("\n")

        return buffer.getvalue()

    def _encode_excel(self, snapshot: DatasetSnapshot) -> str:
        totals = {
            "members": snapshot.metadata.total_members,
            "payments": snapshot.metadata.total_payments,
        }
        parts = [
            "<html>",
            "<head>",
            '<meta charset="utf-8">',
            f"<style>{EXCEL_STYLE}</style>",
            "</head>",
            "<body>",
            f"<h1>تقرير بيانات {html.escape(snapshot.metadata.gym_name)}</h1>",
            f"<p>تاريخ التصدير: {format_date(snapshot.timestamp)}</p>",
        ]

        for category, title, columns in SECTIONS:
            records = getattr(snapshot.data, category)
            if not records:
                continue

            parts.append(f"<h2>{title} ({totals[category]})</h2>")
            parts.append("<table>")
            parts.append(
                "<tr>" + "".join(f"<th>{label}</th>" for label, _ in columns) + "</tr>"
            )
            for record in records:
                cells = []
                for index, (_, getter) in enumerate(columns):
                    value = html.escape(getter(record))
                    if category == "payments" and index == 0:
                        value = f"{value} {CURRENCY_SUFFIX}"
                    cells.append(f"<td>{value}</td>")
                parts.append("<tr>" + "".join(cells) + "</tr>")
            parts.append("</table>")

        parts.append("</body>")
        parts.append("</html>")
        return "\n".join(parts)
