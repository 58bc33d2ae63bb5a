"""
Application entry point — parses flags, wires dependencies, runs the pipeline once.

Composition root: creates concrete adapters and injects them into the
pipeline. This is the ONLY place where concrete classes are instantiated;
everything else depends on Protocol interfaces.

Responsibilities:
  1. Parse command-line flags
  2. Load and validate settings (flags override environment/.env)
  3. Configure structlog
  4. Create concrete adapters (file or HTTP source, parser, formatter, writer)
  5. Run the pipeline inside a LoggingExecutionContext
  6. Turn the first failure into a one-line diagnostic and exit status 1
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from functools import partial
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError
from railway import ErrorCode, FailureDescription, LoggingExecutionContext

from fallback_roots import __version__
from fallback_roots.adapters.certdata_parser import NssCertdataParser
from fallback_roots.adapters.file_source import FileCertdataSource
from fallback_roots.adapters.formatter import PythonSourceFormatter
from fallback_roots.adapters.http_client import HttpCertdataSource
from fallback_roots.adapters.writer import FileArtifactWriter
from fallback_roots.config import DEFAULT_CERTDATA_URL, DEFAULT_OUTPUT, AppSettings
from fallback_roots.domain.models import DuplicatePolicy
from fallback_roots.domain.ports import CertdataSource
from fallback_roots.pipeline import run_pipeline

EXIT_OK = 0
EXIT_FAILURE = 1


def configure_structlog(log_level: str = "INFO") -> None:
    """
    Configure structlog for human-readable console output on stderr.

    stdout stays clean; the generated module is the only product of a run.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, stream=sys.stderr, format="%(message)s")
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fallback-roots",
        description=(
            "Generate the embedded fallback root bundle from Mozilla's NSS certdata.txt. "
            "Unset flags fall back to FALLBACK_ROOTS_* environment variables."
        ),
    )
    parser.add_argument(
        "--certdata-url",
        default=None,
        help=(
            "URL to the raw certdata.txt file to parse "
            f"(certdata-path overrides this, if provided; default: {DEFAULT_CERTDATA_URL})"
        ),
    )
    parser.add_argument(
        "--certdata-path",
        default=None,
        help="Path to the NSS certdata.txt file to parse (this overrides certdata-url, if provided)",
    )
    parser.add_argument(
        "--output",
        default=None,
        help=f"Path to file to write output to (default: {DEFAULT_OUTPUT})",
    )
    parser.add_argument(
        "--collapse-duplicates",
        action="store_const",
        const=DuplicatePolicy.COLLAPSE,
        dest="duplicate_policy",
        default=None,
        help="Embed certificates with identical DER bytes only once",
    )
    parser.add_argument(
        "--http-timeout-seconds",
        type=float,
        default=None,
        help="Timeout for the certdata download (default: httpx default)",
    )
    parser.add_argument("--log-level", default=None, help="Log level (default: INFO)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Only flags the user actually passed override the environment."""
    return {key: value for key, value in vars(args).items() if value is not None}


def _describe_validation_error(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in item['loc']) or 'settings'}: {item['msg']}"
        for item in error.errors()
    )


def _create_source(settings: AppSettings) -> CertdataSource:
    if settings.uses_local_source:
        return FileCertdataSource(settings.certdata_path)
    return HttpCertdataSource(settings.certdata_url, timeout=settings.http_timeout_seconds)


def _report_success(path: Path) -> int:
    structlog.get_logger().info("app.done", output=str(path))
    return EXIT_OK


def _report_failure(error: FailureDescription) -> int:
    log = structlog.get_logger()
    log.debug("app.failure_detail", trace=error.full_stack_trace())
    print(f"error: {error.code.value}: {error.describe()}", file=sys.stderr)  # noqa: T201
    return EXIT_FAILURE


def main(argv: Sequence[str] | None = None) -> int:
    """Generate the bundle once. Returns the process exit status."""
    args = build_arg_parser().parse_args(argv)

    try:
        settings = AppSettings(**_overrides(args))
    except ValidationError as e:
        print(  # noqa: T201
            f"error: {ErrorCode.CONFIGURATION_ERROR.value}: {_describe_validation_error(e)}",
            file=sys.stderr,
        )
        return EXIT_FAILURE

    configure_structlog(settings.log_level)
    log = structlog.get_logger()
    log.info(
        "app.starting",
        version=__version__,
        source=settings.certdata_path or settings.certdata_url,
        output=settings.output,
        duplicate_policy=settings.duplicate_policy.value,
    )

    pipeline_fn = partial(
        run_pipeline,
        source=_create_source(settings),
        parser=NssCertdataParser(),
        formatter=PythonSourceFormatter(filename=settings.output),
        writer=FileArtifactWriter(settings.output),
        policy=settings.duplicate_policy,
    )

    result = LoggingExecutionContext(operation="FallbackBundle").execute(pipeline_fn)
    return result.either(
        on_success=_report_success,
        on_failure=_report_failure,
    )


if __name__ == "__main__":
    sys.exit(main())
