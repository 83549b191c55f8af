"""CLI entrypoints for modelgen commands."""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from .config import ConfigError, load_config
from .driver import GeneratorDriver
from .errors import NoModelsProducedError, SourceUnavailable
from .logging import configure_logging
from .mapping import TypeMapper
from .models import DocumentRef
from .parsing import TableParser
from .sources import DocSource


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="modelgen",
        description="Generate typed models from Discord API documentation tables.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Fetch the configured documents and write model modules.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    generate_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Directory holding .modelgen.yml, or the config file itself (defaults to current directory).",
    )
    generate_parser.add_argument(
        "--output",
        type=Path,
        help="Directory to write model modules into (overrides output_dir).",
    )
    generate_parser.add_argument(
        "--docs-root",
        help="URL or directory the document paths are relative to (overrides docs_root).",
    )
    generate_parser.add_argument(
        "--doc",
        action="append",
        dest="documents",
        metavar="REF",
        help="Document to process; repeat to process several (overrides documents).",
    )
    generate_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and render models without writing files.",
    )
    generate_parser.add_argument(
        "--log-file",
        type=Path,
        help="Also write logs to this file.",
    )

    inspect_parser = subparsers.add_parser(
        "inspect",
        help="Print the models found in one document without writing anything.",
    )
    _add_verbose_option(inspect_parser, suppress_default=True)
    inspect_parser.add_argument("document", help="Markdown file path or URL.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for modelgen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        log_file=getattr(args, "log_file", None),
    )

    if args.command == "generate":
        _run_generate(parser, args)
    elif args.command == "inspect":
        _run_inspect(parser, args)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_generate(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    try:
        config = load_config(Path(args.path))
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    overrides: dict[str, object] = {}
    if args.output is not None:
        overrides["output_dir"] = args.output.expanduser().resolve()
    if args.docs_root:
        overrides["docs_root"] = args.docs_root
    if args.documents:
        overrides["documents"] = list(args.documents)
    if overrides:
        config = replace(config, **overrides)

    driver = GeneratorDriver(config)
    try:
        report = driver.run(dry_run=bool(args.dry_run))
    except NoModelsProducedError as exc:
        for document, reason in exc.report.failed:
            print(f"failed: {document}: {reason}", file=sys.stderr)
        parser.exit(1, f"modelgen generate failed: {exc}\nRun with --verbose for more details.\n")

    for document, reason in report.failed:
        print(f"failed: {document}: {reason}")
    for issue in report.issues:
        print(f"warning: {issue}")
    suffix = " (dry-run)" if args.dry_run else f" in {_relativize(Path(config.output_dir or '.'))}"
    print(f"{report.summary()}{suffix}")


def _run_inspect(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    ref = DocumentRef(args.document)
    source = DocSource(Path.cwd())
    try:
        text = source.fetch(ref)
    except SourceUnavailable as exc:
        parser.exit(1, f"{exc}\n")

    parsed = TableParser().parse(text, document=ref.path)
    mapper = TypeMapper()
    if not parsed.tables:
        print("No field tables found")
    for table in parsed.tables:
        print(f"{table.model_name}  (line {table.line}, heading '{table.heading}')")
        for record in table.records:
            marker = "?" if record.optional else ""
            print(f"  {record.name}{marker}: {mapper.resolve(record.raw_type)}")
    for issue in parsed.issues:
        print(f"warning: {issue}")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
