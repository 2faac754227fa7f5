"""Command-line front end.

Usage:
    azure-text-processor --text "Summarize this" notes.txt more.txt
    azure-text-processor --text-file prompt.md --output-dir results/ a.txt
    azure-text-processor --estimate-only big.txt
    azure-text-processor --endpoint https://NAME.openai.azure.com --api-key KEY --save-credentials
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
import sys
from typing import TYPE_CHECKING, TextIO

from azure_text_processor.config import (
    JsonFileCredentialStore,
    resolve_config,
)
from azure_text_processor.core.types import Failure, Notification, UploadedFile
from azure_text_processor.exceptions import ConfigurationError, MissingCredentialsError
from azure_text_processor.files import is_plain_text
from azure_text_processor.output import FileResultSink
from azure_text_processor.session import ProcessingSession

if TYPE_CHECKING:
    from collections.abc import Sequence

    import httpx

    from azure_text_processor.config import CredentialStore
    from azure_text_processor.tokens import TokenizerAdapter

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

# ruff: noqa: T201


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="azure-text-processor",
        description=(
            "Combine text and .txt files, check the token budget and process "
            "them with an Azure OpenAI responses deployment."
        ),
    )
    parser.add_argument("files", nargs="*", type=Path, help="Plain-text files to include")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--text", default="", help="Primary input text")
    source.add_argument("--text-file", type=Path, help="Read the primary text from a file")
    parser.add_argument("--endpoint", help="Azure OpenAI endpoint URL")
    parser.add_argument("--api-key", help="Azure OpenAI API key")
    parser.add_argument("--model", help="Model/deployment name")
    parser.add_argument("--api-version", help="api-version query value")
    parser.add_argument(
        "--output-dir", type=Path, help="Also save the result as a dated .txt file here"
    )
    parser.add_argument(
        "--save-credentials",
        action="store_true",
        help="Store the resolved endpoint, key, model and API version locally",
    )
    parser.add_argument(
        "--clear-credentials",
        action="store_true",
        help="Remove locally stored credentials and exit",
    )
    parser.add_argument(
        "--estimate-only",
        action="store_true",
        help="Print the token estimate and exit (0 if within budget, 1 if over)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def _print_notification(notification: Notification, stream: TextIO) -> None:
    print(f"[{notification.level}] {notification.title}: {notification.description}", file=stream)


def _overrides(args: argparse.Namespace) -> dict[str, str]:
    return {
        field: value
        for field, value in (
            ("endpoint", args.endpoint),
            ("api_key", args.api_key),
            ("model", args.model),
            ("api_version", args.api_version),
        )
        if value is not None
    }


def _collect_files(paths: Sequence[Path], err: TextIO) -> list[UploadedFile]:
    uploads: list[UploadedFile] = []
    for path in paths:
        if not path.is_file():
            raise FileNotFoundError(f"No such file: {path}")
        upload = UploadedFile.from_path(path)
        if not is_plain_text(upload.name, upload.mime_type):
            print(f"Skipping {path}: only plain-text (.txt) files are accepted", file=err)
            continue
        uploads.append(upload)
    return uploads


async def run(
    args: argparse.Namespace,
    *,
    store: CredentialStore | None = None,
    tokenizer: TokenizerAdapter | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Execute one CLI invocation and return its exit status."""
    out = out or sys.stdout
    err = err or sys.stderr
    store = store if store is not None else JsonFileCredentialStore()

    if args.clear_credentials:
        store.clear()
        print("Stored credentials cleared.", file=err)
        return EXIT_OK

    try:
        config = resolve_config(_overrides(args), store=store)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=err)
        return EXIT_USAGE

    session = ProcessingSession.from_config(
        config,
        store=store,
        tokenizer=tokenizer,
        transport=transport,
        notify=lambda n: _print_notification(n, err),
    )

    if args.save_credentials:
        try:
            session.update_credentials(config.credentials())
        except MissingCredentialsError as e:
            print(f"Cannot save credentials: {e}", file=err)
            return EXIT_USAGE
        print("Credentials saved.", file=err)

    try:
        text = args.text_file.read_text(encoding="utf-8") if args.text_file else args.text
        uploads = _collect_files(args.files, err)
    except (OSError, UnicodeDecodeError) as e:
        print(f"Input error: {e}", file=err)
        return EXIT_USAGE

    if isinstance(session.set_primary_text(text), Failure):
        return EXIT_FAILURE
    if uploads:
        await session.add_files(uploads)

    budget = session.budget
    marker = " (severe)" if budget.severe else " (warning)" if budget.warn else ""
    print(
        f"Estimated tokens: {budget.count:,} / {budget.ceiling:,} "
        f"({budget.usage_ratio:.1%}){marker}",
        file=err,
    )
    if args.estimate_only:
        return EXIT_OK if budget.admitted else EXIT_FAILURE

    if args.save_credentials and not session.has_content:
        return EXIT_OK

    outcome = await session.submit()
    if isinstance(outcome, Failure):
        return EXIT_FAILURE

    sink = FileResultSink(args.output_dir or ".", stream=out)
    sink.display(outcome.value)
    if args.output_dir is not None:
        saved = session.download_result(sink)
        print(f"Saved result to {saved}", file=err)
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
