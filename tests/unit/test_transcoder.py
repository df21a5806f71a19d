"""Unit tests for bulk result transcoding."""

from datetime import date
from decimal import Decimal

import pytest
from structlog.testing import capture_logs

from column_crypt.security.cache import DecryptionCache
from column_crypt.security.codec import EnvelopeCodec
from column_crypt.transcoder import (
    DiagnosticEvent,
    FieldDiagnostic,
    ResultTranscoder,
    log_sink,
)


@pytest.fixture()
def events() -> list[DiagnosticEvent]:
    return []


@pytest.fixture()
def transcoder(cache: DecryptionCache, events: list[DiagnosticEvent]) -> ResultTranscoder:
    return ResultTranscoder(cache, sink=events.append)


def _people(codec: EnvelopeCodec, rows: int = 5) -> tuple[list[dict], list[dict]]:
    """Build encrypted rows and the plaintext they should decrypt to."""
    plain = [
        {
            "name": f"Person {i}",
            "email": f"person{i}@example.com",
            "ssn": f"123-45-{i:04d}",
        }
        for i in range(rows)
    ]
    encrypted = [{k: codec.encrypt(v) for k, v in row.items()} for row in plain]
    return encrypted, plain


class TestTranscode:
    """Tests for ResultTranscoder.transcode."""

    def test_decrypts_every_field(
        self, transcoder: ResultTranscoder, codec: EnvelopeCodec
    ) -> None:
        encrypted, plain = _people(codec)
        result = transcoder.transcode(encrypted)

        assert result.rows == plain
        assert result.diagnostics == []

    def test_isolates_single_corrupt_field(
        self,
        transcoder: ResultTranscoder,
        codec: EnvelopeCodec,
        events: list[DiagnosticEvent],
        tamper_envelope,
    ) -> None:
        """One bad field in row 3 leaves the other 14 decrypted."""
        encrypted, plain = _people(codec)
        corrupt = tamper_envelope(encrypted[2]["ssn"])
        encrypted[2]["ssn"] = corrupt

        result = transcoder.transcode(encrypted)

        assert len(result.rows) == 5
        assert sum(len(row) for row in result.rows) == 15
        assert result.rows[2]["ssn"] == corrupt
        expected = [dict(row) for row in plain]
        expected[2]["ssn"] = corrupt
        assert result.rows == expected

        assert result.error_count == 1
        diagnostic = result.diagnostics[0]
        assert diagnostic.row_index == 2
        assert diagnostic.column == "ssn"
        assert diagnostic.error.startswith("Decryption failed:")
        assert result.failed_columns == {"ssn"}

        field_events = [e for e in events if e.column is not None]
        assert field_events == [
            DiagnosticEvent(level="warning", column="ssn", message=diagnostic.error)
        ]

    def test_summary_emitted_after_scan(
        self,
        transcoder: ResultTranscoder,
        codec: EnvelopeCodec,
        events: list[DiagnosticEvent],
        tamper_envelope,
    ) -> None:
        encrypted, _ = _people(codec, rows=3)
        encrypted[0]["name"] = tamper_envelope(encrypted[0]["name"])
        encrypted[2]["email"] = tamper_envelope(encrypted[2]["email"])

        transcoder.transcode(encrypted)

        assert [e.column for e in events] == ["name", "email", None]
        assert events[-1].message == "Total decryption errors: 2"

    def test_no_summary_without_errors(
        self,
        transcoder: ResultTranscoder,
        codec: EnvelopeCodec,
        events: list[DiagnosticEvent],
    ) -> None:
        encrypted, _ = _people(codec, rows=2)
        transcoder.transcode(encrypted)
        assert events == []

    def test_non_strings_pass_through(self, transcoder: ResultTranscoder) -> None:
        row = {
            "id": 7,
            "balance": Decimal("10.50"),
            "joined": date(2024, 1, 2),
            "active": True,
            "notes": None,
            "blob": b"|||||||" * 4,
        }
        result = transcoder.transcode([row])
        assert result.rows == [row]

    def test_preserves_column_order(
        self, transcoder: ResultTranscoder, codec: EnvelopeCodec
    ) -> None:
        row = {"z": codec.encrypt("last"), "a": 1, "m": "plain"}
        result = transcoder.transcode([row])
        assert list(result.rows[0]) == ["z", "a", "m"]
        assert result.rows[0]["z"] == "last"

    def test_does_not_mutate_input(
        self, transcoder: ResultTranscoder, codec: EnvelopeCodec
    ) -> None:
        envelope = codec.encrypt("secret")
        rows = [{"c": envelope}]
        transcoder.transcode(rows)
        assert rows == [{"c": envelope}]

    def test_empty_result(self, transcoder: ResultTranscoder) -> None:
        result = transcoder.transcode([])
        assert result.rows == []
        assert result.error_count == 0

    def test_accepts_generator(
        self, transcoder: ResultTranscoder, codec: EnvelopeCodec
    ) -> None:
        rows = ({"v": codec.encrypt(str(i))} for i in range(3))
        assert [r["v"] for r in transcoder.transcode(rows).rows] == ["0", "1", "2"]

    def test_silent_mode_substitutes_without_diagnostics(
        self,
        transcoder: ResultTranscoder,
        codec: EnvelopeCodec,
        events: list[DiagnosticEvent],
        tamper_envelope,
    ) -> None:
        bad = tamper_envelope(codec.encrypt("secret"))
        result = transcoder.transcode(
            [{"a": bad, "b": codec.encrypt("fine")}], collect_errors=False
        )

        assert result.rows == [{"a": bad, "b": "fine"}]
        assert result.diagnostics == []
        assert events == []


class TestTranscodeRecords:
    """Tests for positional record transcoding."""

    def test_zips_columns_and_records(
        self, transcoder: ResultTranscoder, codec: EnvelopeCodec
    ) -> None:
        records = [(1, codec.encrypt("alice")), (2, None)]
        result = transcoder.transcode_records(["id", "name"], records)
        assert result.rows == [{"id": 1, "name": "alice"}, {"id": 2, "name": None}]

    def test_reports_row_index(
        self, transcoder: ResultTranscoder, codec: EnvelopeCodec, tamper_envelope
    ) -> None:
        records = [("ok",), (tamper_envelope(codec.encrypt("x" * 10)),)]
        result = transcoder.transcode_records(["col"], records)
        assert result.diagnostics == [
            FieldDiagnostic(row_index=1, column="col", error=result.diagnostics[0].error)
        ]


class TestLogSink:
    """Tests for the default structlog sink."""

    def test_forwards_level_column_and_message(self) -> None:
        with capture_logs() as logs:
            log_sink(DiagnosticEvent(level="warning", column="ssn", message="boom"))

        assert logs == [
            {
                "event": "transcode_diagnostic",
                "column": "ssn",
                "message": "boom",
                "log_level": "warning",
            }
        ]

    def test_default_sink_used(
        self, cache: DecryptionCache, codec: EnvelopeCodec, tamper_envelope
    ) -> None:
        transcoder = ResultTranscoder(cache)
        with capture_logs() as logs:
            transcoder.transcode([{"ssn": tamper_envelope(codec.encrypt("secret"))}])

        diagnostics = [e for e in logs if e["event"] == "transcode_diagnostic"]
        assert [e["column"] for e in diagnostics] == ["ssn", None]
