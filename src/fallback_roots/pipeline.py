"""
Pipeline — the core ROP pipeline producing the fallback bundle module.

Domain layer — this is PURE BUSINESS LOGIC. All I/O is injected via ports
(Protocol interfaces).

The pipeline connects stages via flat_map, forming a railway:

  source.fetch()
    → parser.parse(data)
      → ensure at least one root
        → select_bundle (filter constrained, sort, duplicate policy)
          → render_module
            → formatter.format(text)
              → writer.write(text)

Each stage returns Result[T]. Failures short-circuit automatically
through the ROP railway — nothing is written unless every earlier stage
succeeded.
"""

from __future__ import annotations

from pathlib import Path

import structlog
from railway import ErrorCode
from railway.result import Result

from fallback_roots.bundle import select_bundle
from fallback_roots.domain.models import DuplicatePolicy, TrustRecord
from fallback_roots.domain.ports import (
    ArtifactWriter,
    CertdataSource,
    SourceFormatter,
    TrustRecordParser,
)
from fallback_roots.encoder import render_module

log = structlog.get_logger()


def build_module(
    records: list[TrustRecord],
    policy: DuplicatePolicy = DuplicatePolicy.KEEP,
) -> str:
    """Select the bundle from parsed records and render the module text."""
    bundle = select_bundle(records, policy)
    log.info("bundle.selected", parsed=len(records), embedded=len(bundle))
    return render_module(bundle)


def generate_source(
    source: CertdataSource,
    parser: TrustRecordParser,
    formatter: SourceFormatter,
    policy: DuplicatePolicy = DuplicatePolicy.KEEP,
) -> Result[str]:
    """
    Run every in-memory stage and return the formatted module text.

    An empty parse is fatal: an empty trust store always means the input
    is broken, never that there are no roots to embed.
    """
    return (
        source.fetch()
        .flat_map(parser.parse)
        .ensure(
            lambda records: len(records) > 0,
            ErrorCode.EMPTY_RESULT_ERROR,
            "certdata.txt appears to contain zero roots",
        )
        .map(lambda records: build_module(records, policy))
        .flat_map(formatter.format)
        .peek(lambda text: log.debug("module.rendered", size_bytes=len(text.encode("utf-8"))))
    )


def run_pipeline(
    source: CertdataSource,
    parser: TrustRecordParser,
    formatter: SourceFormatter,
    writer: ArtifactWriter,
    policy: DuplicatePolicy = DuplicatePolicy.KEEP,
) -> Result[Path]:
    """
    Execute the full generation pipeline.

    Flow:
      1. Fetch certdata.txt (file or HTTP)
      2. Parse into TrustRecords
      3. Fail on zero records
      4. Filter, sort and de-duplicate; render the module
      5. Validate the module source
      6. Write it to the output path

    Returns Result[Path] with the written path on success,
    or Result.failure with the error from the first failing stage.
    """
    return (
        generate_source(source, parser, formatter, policy)
        .flat_map(writer.write)
        .peek_failure(lambda err: log.warning("pipeline.failed", code=err.code.value))
    )
