import io
import logging
import os
from typing import List, Optional

import pandas as pd

from schemas.email_list import EmailEntry, EmailImportResult
from services.validation_service import is_valid_email

logger = logging.getLogger(__name__)


class FileProcessingError(Exception):
    """Raised when an uploaded contact file cannot be read at all"""
    pass


class EmailListImportService:
    """Reads recipient contacts from CSV or Excel uploads"""

    def __init__(self):
        self.allowed_extensions = {".csv", ".txt", ".xlsx"}
        self.max_file_size = 5 * 1024 * 1024  # 5MB
        self.encodings = ["utf-8-sig", "latin-1", "cp1252"]
        self.header_labels = {"email", "e-mail", "email address"}

    def parse_upload(self, file_content: bytes, filename: str) -> EmailImportResult:
        """
        Parse an uploaded contact file.

        Column 1 is the email and column 2 an optional name. A first row
        whose first cell reads "email" is treated as a header. Rows with a
        missing or malformed email are skipped and counted, never fatal.
        """
        if len(file_content) > self.max_file_size:
            raise FileProcessingError(
                f"File size ({len(file_content)} bytes) exceeds maximum allowed size ({self.max_file_size} bytes)"
            )

        file_ext = self._get_file_extension(filename)
        if file_ext not in self.allowed_extensions:
            raise FileProcessingError(
                f"File type {file_ext or 'unknown'} not allowed. Allowed types: {', '.join(sorted(self.allowed_extensions))}"
            )

        if file_ext == ".xlsx":
            frame = self._read_excel(file_content)
        else:
            frame = self._read_csv(self._decode(file_content))

        return self._collect_entries(frame)

    def parse_csv_text(self, text: str) -> EmailImportResult:
        return self._collect_entries(self._read_csv(text))

    def _decode(self, file_content: bytes) -> str:
        for encoding in self.encodings:
            try:
                return file_content.decode(encoding)
            except UnicodeDecodeError:
                continue
        logger.warning("Decoded contact file with UTF-8 (ignoring errors)")
        return file_content.decode("utf-8", errors="ignore")

    def _read_csv(self, text: str) -> pd.DataFrame:
        if not text.strip():
            return pd.DataFrame(columns=["email", "name"])

        def keep_first_columns(bad_line: List[str]) -> List[str]:
            return bad_line[:2]

        try:
            return pd.read_csv(
                io.StringIO(text),
                header=None,
                names=["email", "name"],
                index_col=False,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                engine="python",
                on_bad_lines=keep_first_columns,
            )
        except Exception as e:
            raise FileProcessingError(f"Error processing CSV file: {str(e)}") from e

    def _read_excel(self, file_content: bytes) -> pd.DataFrame:
        try:
            frame = pd.read_excel(io.BytesIO(file_content), header=None, dtype=str, engine="openpyxl")
        except Exception as e:
            raise FileProcessingError(f"Error processing Excel file: {str(e)}") from e
        frame = frame.iloc[:, :2]
        frame.columns = ["email", "name"][: len(frame.columns)]
        return frame

    def _is_header(self, row) -> bool:
        return (row[0] or "").strip().lower() in self.header_labels

    def _collect_entries(self, frame: pd.DataFrame) -> EmailImportResult:
        rows = [
            (self._cell(row.get("email")), self._cell(row.get("name")))
            for row in frame.to_dict(orient="records")
        ]
        rows = [(email, name) for email, name in rows if email or name]

        if rows and self._is_header(rows[0]):
            rows = rows[1:]

        entries = []
        skipped = 0
        for email, name in rows:
            if email and is_valid_email(email):
                entries.append(EmailEntry(email=email, name=name))
            else:
                skipped += 1

        if skipped:
            logger.warning(f"Skipped {skipped} contact rows with missing or invalid emails")

        return EmailImportResult(
            entries=entries,
            total_rows=len(rows),
            skipped=skipped,
            has_skipped=skipped > 0,
        )

    @staticmethod
    def _cell(value) -> Optional[str]:
        if not isinstance(value, str):
            return None
        return value.strip()

    def _get_file_extension(self, filename: str) -> str:
        """Get file extension from filename"""
        return os.path.splitext((filename or "").lower())[1]


# Global import service instance
email_list_import_service = EmailListImportService()


def parse_email_csv(text: str) -> EmailImportResult:
    return email_list_import_service.parse_csv_text(text)
