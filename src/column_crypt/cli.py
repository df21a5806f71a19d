"""Command line interface for Column Crypt.

Usage:
    column-crypt encrypt "hello-secret"
    column-crypt decrypt "<envelope>"
    column-crypt detect "<value>"
    column-crypt transcode rows.json
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from column_crypt.config import get_settings
from column_crypt.logging import get_logger, setup_logging
from column_crypt.security.cache import DecryptionCache
from column_crypt.security.detector import is_encrypted
from column_crypt.security.errors import KeyMaterialError
from column_crypt.tools import OperationResult, decrypt_data, encrypt_data
from column_crypt.transcoder import ResultTranscoder

log = get_logger("column_crypt.cli")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="column-crypt",
        description="Encrypt, decrypt and transcode column values",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    enc = sub.add_parser("encrypt", help="Encrypt a plain text value")
    enc.add_argument("value", help="Plain text to encrypt")

    dec = sub.add_parser("decrypt", help="Decrypt an envelope")
    dec.add_argument("value", help="Envelope to decrypt")

    det = sub.add_parser("detect", help="Report whether a value looks encrypted")
    det.add_argument("value", help="Value to inspect")

    tr = sub.add_parser("transcode", help="Decrypt every field of a JSON result set")
    tr.add_argument("path", type=Path, help="JSON file holding an array of row objects")

    return parser


def _emit(result: OperationResult) -> int:
    print(json.dumps(result.to_dict(), ensure_ascii=False))
    return 0 if result.success else 1


def _transcode(cache: DecryptionCache, path: Path) -> OperationResult:
    try:
        rows: Any = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        return OperationResult(success=False, error=str(e))
    if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
        return OperationResult(success=False, error="Expected a JSON array of objects")

    result = ResultTranscoder(cache).transcode(rows)
    return OperationResult(
        success=True,
        data={
            "rows": result.rows,
            "errors": [
                {"row": d.row_index, "column": d.column, "error": d.error}
                for d in result.diagnostics
            ],
        },
    )


def main(argv: list[str] | None = None) -> int:
    """Entry point."""
    args = build_parser().parse_args(argv)

    if args.command == "detect":
        print(json.dumps({"encrypted": is_encrypted(args.value)}))
        return 0

    try:
        settings = get_settings()
        setup_logging()
        cache = DecryptionCache.from_settings(settings)
    except (ValidationError, KeyMaterialError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    log.debug("cli_command", command=args.command)

    if args.command == "encrypt":
        return _emit(encrypt_data(cache.codec, args.value))
    if args.command == "decrypt":
        return _emit(decrypt_data(cache.codec, args.value))
    return _emit(_transcode(cache, args.path))
