"""Command line front end for specguard.

Subcommands mirror the checks: ``validate``, ``cycles``, ``diff`` and
``check`` (a suite run). Exit status is 0 when every selected check passed,
1 when any failed, and 2 when the document could not be loaded.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Iterable, List, Optional, TextIO

from ..checks.breaking import compare_against_revision
from ..checks.cycles import detect_cycles
from ..checks.structural import validate_document
from ..core.enums import Impact
from ..core.models import CheckResult, SuiteResult
from ..core.settings import SpecGuardSettings, get_settings
from ..exceptions import ParseError, SchemaShapeError
from ..observability.logging import configure_logging
from ..revisions import GitRevisionFetcher
from ..spec.loader import load_path
from ..suite import SuiteBuilder

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_UNLOADABLE = 2


def _add_common(parser: argparse.ArgumentParser, settings: SpecGuardSettings) -> None:
    parser.add_argument(
        "spec",
        nargs="?",
        default=settings.spec_path,
        help=f"Path to the OpenAPI document (default: {settings.spec_path})",
    )
    parser.add_argument("--format", choices=("text", "json"), default="text", help="Output format")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")


def _add_revision(parser: argparse.ArgumentParser, settings: SpecGuardSettings, required: bool) -> None:
    parser.add_argument(
        "--base-ref",
        default=settings.base_ref if required else None,
        help=f"Git ref to compare against (default: {settings.base_ref})" if required else "Git ref to compare against",
    )
    parser.add_argument(
        "--enforce-semver",
        action="store_true",
        default=settings.enforce_semver,
        help="Require info.version to be bumped according to the detected changes",
    )
    parser.add_argument("--repo-root", default=None, help="Repository used to read the prior revision")


def build_parser(settings: Optional[SpecGuardSettings] = None) -> argparse.ArgumentParser:
    settings = settings or get_settings()
    parser = argparse.ArgumentParser(
        prog="specguard",
        description="Validate OpenAPI documents, find circular references and detect breaking changes.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    validate_parser = subparsers.add_parser("validate", help="Check structural conformance")
    _add_common(validate_parser, settings)
    validate_parser.add_argument(
        "--no-example-warnings",
        action="store_true",
        help="Do not warn about component schemas without examples",
    )

    cycles_parser = subparsers.add_parser("cycles", help="Report circular schema references")
    _add_common(cycles_parser, settings)

    diff_parser = subparsers.add_parser("diff", help="Detect breaking changes against a git revision")
    _add_common(diff_parser, settings)
    _add_revision(diff_parser, settings, required=True)

    check_parser = subparsers.add_parser("check", help="Run the selected checks as a suite")
    _add_common(check_parser, settings)
    _add_revision(check_parser, settings, required=False)
    check_parser.add_argument("--skip-validation", action="store_true", help="Leave out structural validation")
    check_parser.add_argument("--skip-cycles", action="store_true", help="Leave out circular reference detection")

    return parser


def _render_text(results: Iterable[CheckResult], stream: TextIO) -> None:
    for result in results:
        marker = "✅" if result.passed else "❌"
        print(f"{marker} {result.name}: {result.summary}", file=stream)
        for issue in result.errors + result.warnings:
            print(f"   {issue}", file=stream)
        changes = result.diagnostics.get("changes") or []
        for impact in Impact:
            selected = [change for change in changes if change.impact is impact]
            if not selected:
                continue
            print(f"   {impact.value} changes:", file=stream)
            for change in selected:
                print(f"     - [{change.kind.value}] {change.path}: {change.description}", file=stream)
        bump = result.diagnostics.get("required_bump")
        if "required_bump" in result.diagnostics:
            print(f"   required version bump: {bump or 'none'}", file=stream)


def _emit(results: List[CheckResult], fmt: str, stream: TextIO) -> int:
    suite_result = SuiteResult(results=tuple(results))
    if fmt == "json":
        print(json.dumps(suite_result.model_dump(mode="json"), indent=2, sort_keys=True), file=stream)
    else:
        _render_text(results, stream)
    return EXIT_OK if suite_result.passed else EXIT_FAILED


def main(argv: Optional[List[str]] = None, settings: Optional[SpecGuardSettings] = None) -> int:
    """Main CLI entry point."""
    settings = settings or get_settings()
    parser = build_parser(settings)
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_FAILED

    configure_logging("DEBUG" if args.verbose else settings.log_level, settings.log_format)
    stream = sys.stdout

    try:
        document = load_path(args.spec)
    except OSError as exc:
        print(f"❌ Unable to read {args.spec}: {exc}", file=sys.stderr)
        return EXIT_UNLOADABLE
    except (ParseError, SchemaShapeError) as exc:
        print(f"❌ {args.spec} could not be loaded: {exc.message}", file=sys.stderr)
        return EXIT_UNLOADABLE

    if args.command == "validate":
        result = validate_document(
            document,
            warn_missing_examples=settings.warn_missing_examples and not args.no_example_warnings,
        )
        return _emit([result], args.format, stream)

    if args.command == "cycles":
        result, _ = detect_cycles(document)
        return _emit([result], args.format, stream)

    fetch = GitRevisionFetcher(args.repo_root, timeout=settings.git_timeout_seconds)

    if args.command == "diff":
        result = compare_against_revision(
            document,
            args.base_ref,
            fetch,
            args.spec,
            enforce_semver=args.enforce_semver,
        )
        return _emit([result], args.format, stream)

    builder = SuiteBuilder()
    if not args.skip_validation:
        builder.with_validation(warn_missing_examples=settings.warn_missing_examples)
    if not args.skip_cycles:
        builder.with_circular_references()
    if args.base_ref:
        builder.with_breaking_changes(args.base_ref, fetch, args.spec, enforce_semver=args.enforce_semver)
    suite_result = builder.build().run(document)
    return _emit(list(suite_result.results), args.format, stream)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
