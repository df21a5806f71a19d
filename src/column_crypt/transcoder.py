"""Bulk decryption of tabular query results."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from column_crypt.logging import get_logger
from column_crypt.security.cache import DecryptionCache

log = get_logger("column_crypt.transcoder")


@dataclass(frozen=True)
class DiagnosticEvent:
    """A diagnostic emitted while transcoding."""

    level: str
    column: str | None
    message: str


DiagnosticSink = Callable[[DiagnosticEvent], None]


def log_sink(event: DiagnosticEvent) -> None:
    """Forward a diagnostic event to the structured logger."""
    emit = getattr(log, event.level, log.warning)
    emit("transcode_diagnostic", column=event.column, message=event.message)


@dataclass(frozen=True)
class FieldDiagnostic:
    """A field that could not be decrypted."""

    row_index: int
    column: str
    error: str


@dataclass
class TranscodeResult:
    """Transcoded rows and the failures collected along the way."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    diagnostics: list[FieldDiagnostic] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.diagnostics)

    @property
    def failed_columns(self) -> set[str]:
        return {d.column for d in self.diagnostics}


class ResultTranscoder:
    """Decrypts every encrypted-looking string field of a result set.

    A field that fails to decrypt keeps its original value and is reported as
    a diagnostic; the scan always covers every row.
    """

    def __init__(self, cache: DecryptionCache, sink: DiagnosticSink | None = None) -> None:
        """Initialize the transcoder.

        Args:
            cache: Cache used to decrypt individual values.
            sink: Receives diagnostic events; defaults to the structured logger.
        """
        self._cache = cache
        self._sink = sink or log_sink

    def transcode(
        self,
        rows: Iterable[Mapping[str, Any]],
        collect_errors: bool = True,
    ) -> TranscodeResult:
        """Decrypt the string fields of each row.

        Args:
            rows: Rows mapping column name to value, in column order.
            collect_errors: Record per-field failures. When False, failed
                fields are substituted silently.

        Returns:
            New rows with the same columns, plus any diagnostics.
        """
        result = TranscodeResult()

        for row_index, row in enumerate(rows):
            out: dict[str, Any] = {}
            for column, value in row.items():
                if not isinstance(value, str):
                    out[column] = value
                    continue

                if not collect_errors:
                    out[column] = self._cache.try_decrypt(value)
                    continue

                decrypted = self._cache.try_decrypt_with_error(value)
                if not decrypted.success:
                    error = decrypted.error or "Decryption failed"
                    result.diagnostics.append(
                        FieldDiagnostic(row_index=row_index, column=column, error=error)
                    )
                    self._sink(DiagnosticEvent(level="warning", column=column, message=error))
                out[column] = decrypted.value
            result.rows.append(out)

        if result.diagnostics:
            self._sink(
                DiagnosticEvent(
                    level="warning",
                    column=None,
                    message=f"Total decryption errors: {result.error_count}",
                )
            )
            log.debug(
                "transcode_decryption_errors",
                total=result.error_count,
                rows=len(result.rows),
                columns=sorted(result.failed_columns),
            )

        return result

    def transcode_records(
        self,
        columns: Sequence[str],
        records: Iterable[Sequence[Any]],
        collect_errors: bool = True,
    ) -> TranscodeResult:
        """Transcode positional records, as returned by a DB-API cursor."""
        names = list(columns)
        return self.transcode(
            (dict(zip(names, record)) for record in records),
            collect_errors=collect_errors,
        )
