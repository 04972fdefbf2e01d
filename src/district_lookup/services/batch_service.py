"""Batch service: bounded-concurrency district resolution over many ZIP codes.

ZIP codes are processed in sequential chunks. Within a chunk every code runs
as its own task behind a shared ConcurrencyGate, and the whole chunk is
awaited before the next one starts. One code's failure never aborts the
batch; it is recorded as a failed BatchResult.
"""

import asyncio
import contextlib
import dataclasses
import time
from collections import Counter
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import TypeVar

from loguru import logger

from district_lookup.core.config import Settings
from district_lookup.lib.districts import (
    CALIFORNIA,
    ConcurrencyGate,
    DistrictLookupError,
    DistrictResolver,
    LookupOptions,
    RegionProfile,
    supported_zip_codes,
)
from district_lookup.lib.exporter import export_snapshot, render_json
from district_lookup.lib.officials import (
    BaseRepresentativeProvider,
    DistrictOfficeProvider,
    RepresentativeLevel,
    RepresentativeRecord,
)
from district_lookup.schemas.district import DistrictCategory, MultiDistrictMapping, SingleDistrictMapping
from district_lookup.schemas.export import ExportedRepresentative, ExportedZipMapping, ExportMetadata, ExportSnapshot
from district_lookup.services.district_service import representatives_for_mapping

DEFAULT_MAX_CONCURRENCY = 10
DEFAULT_BATCH_SIZE = 25
DEFAULT_DELAY_BETWEEN_BATCHES = 0.1  # seconds

COMMON_ERROR_LIMIT = 5

ProgressCallback = Callable[[int, int], None]
ErrorCallback = Callable[[str, str], None]

_T = TypeVar("_T")


@dataclass(frozen=True)
class BatchResult:
    """Outcome of resolving one ZIP code in a batch.

    Exactly one of ``mapping`` and ``error`` is set.
    """

    zip_code: str
    success: bool
    mapping: SingleDistrictMapping | MultiDistrictMapping | None = None
    representatives: tuple[RepresentativeRecord, ...] = ()
    processing_time_ms: float = 0.0
    error: str | None = None
    error_code: str | None = None


@dataclass
class BatchSummary:
    processed: int
    successful: int
    failed: int
    errors: list[dict[str, str]] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        return self.successful / self.processed if self.processed else 0.0


@dataclass
class BatchRunReport:
    """Result of a full-universe run."""

    summary: BatchSummary
    results: list[BatchResult]
    total_time_ms: float
    average_time_per_zip_ms: float
    success_rate: float


@dataclass(frozen=True)
class ValidationFailure:
    zip_code: str
    reason: str


@dataclass
class ValidationReport:
    """Partition of batch results into valid and invalid.

    Attributes:
        valid: Successful results that pass every check.
        invalid: Failed results, plus failed copies of successes that did not
            pass, each carrying the rejection reason as its error.
        failures: One entry per invalid result.
        common_errors: The most frequent reasons, most common first.
    """

    valid: list[BatchResult]
    invalid: list[BatchResult]
    failures: list[ValidationFailure]
    common_errors: list[str]

    @property
    def total_checked(self) -> int:
        return len(self.valid) + len(self.invalid)

    @property
    def valid_count(self) -> int:
        return len(self.valid)

    @property
    def invalid_count(self) -> int:
        return len(self.invalid)


def summarize(results: Iterable[BatchResult]) -> BatchSummary:
    """Aggregate batch results into counts and a per-ZIP error list."""
    results = list(results)
    failed = [r for r in results if not r.success]
    return BatchSummary(
        processed=len(results),
        successful=len(results) - len(failed),
        failed=len(failed),
        errors=[{"zip_code": r.zip_code, "error": r.error or "Unknown error"} for r in failed],
    )


class BatchOrchestrator:
    """Resolve many ZIP codes with bounded concurrency.

    Args:
        resolver: District resolver shared by every task.
        representatives: Representative provider; office seats when omitted.
        max_concurrency: Default bound on simultaneous resolutions.
        batch_size: Default chunk size.
        delay_between_batches: Default pause between chunks, in seconds.
        region: Region used for the ZIP universe and validation.
        export_dir: Base directory for relative export paths; relative paths
            resolve against the working directory when omitted.
    """

    def __init__(
        self,
        resolver: DistrictResolver,
        representatives: BaseRepresentativeProvider | None = None,
        *,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        batch_size: int = DEFAULT_BATCH_SIZE,
        delay_between_batches: float = DEFAULT_DELAY_BETWEEN_BATCHES,
        region: RegionProfile = CALIFORNIA,
        export_dir: str | Path | None = None,
    ) -> None:
        self.resolver = resolver
        self.representatives = representatives if representatives is not None else DistrictOfficeProvider()
        self.max_concurrency = max_concurrency
        self.batch_size = batch_size
        self.delay_between_batches = delay_between_batches
        self.region = region
        self.export_dir = Path(export_dir) if export_dir is not None else None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        resolver: DistrictResolver,
        representatives: BaseRepresentativeProvider | None = None,
    ) -> "BatchOrchestrator":
        return cls(
            resolver,
            representatives,
            max_concurrency=settings.batch_max_concurrency,
            batch_size=settings.batch_size,
            delay_between_batches=settings.batch_delay_ms / 1000,
            export_dir=settings.export_dir,
        )

    async def process_batch(
        self,
        zip_codes: Iterable[str],
        *,
        max_concurrency: int | None = None,
        batch_size: int | None = None,
        delay_between_batches: float | None = None,
        on_progress: ProgressCallback | None = None,
        on_error: ErrorCallback | None = None,
        options: LookupOptions | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[BatchResult]:
        """Resolve ZIP codes in sequential chunks.

        Args:
            zip_codes: Codes to resolve; malformed codes become failed results.
            max_concurrency: Bound on simultaneous resolutions.
            batch_size: Codes per chunk.
            delay_between_batches: Pause between chunks, in seconds.
            on_progress: Called with ``(processed, total)`` after each chunk.
            on_error: Called with ``(message, zip_code)`` for each failure in
                a chunk, after ``on_progress``.
            options: Lookup options forwarded to the resolver.
            cancel_event: When set, no further codes start and in-flight
                resolutions are cancelled; cancelled codes are omitted.

        Returns:
            Results in input order.
        """
        codes = list(zip_codes)
        size = batch_size or self.batch_size
        delay = self.delay_between_batches if delay_between_batches is None else delay_between_batches
        gate = ConcurrencyGate(max_concurrency or self.max_concurrency)
        total = len(codes)

        if size < 1:
            msg = f"batch_size must be positive, got {size}"
            raise ValueError(msg)

        results: list[BatchResult] = []
        for start in range(0, total, size):
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"Batch cancelled after {len(results)}/{total} ZIP codes")
                break

            chunk = codes[start : start + size]
            outcomes = await asyncio.gather(*(self._process_one(code, gate, options, cancel_event) for code in chunk))
            done = [r for r in outcomes if r is not None]
            results.extend(done)

            if on_progress is not None:
                on_progress(len(results), total)
            if on_error is not None:
                for result in done:
                    if not result.success:
                        on_error(result.error or "Unknown error", result.zip_code)

            if delay > 0 and start + size < total:
                await asyncio.sleep(delay)

        return results

    async def _process_one(
        self,
        zip_code: str,
        gate: ConcurrencyGate,
        options: LookupOptions | None,
        cancel_event: asyncio.Event | None,
    ) -> BatchResult | None:
        if cancel_event is not None and cancel_event.is_set():
            return None

        async with gate:
            if cancel_event is not None and cancel_event.is_set():
                return None

            started = time.perf_counter()
            try:
                work = self._resolve_with_representatives(zip_code, options)
                if cancel_event is None:
                    mapping, representatives = await work
                else:
                    outcome = await _run_until_cancelled(work, cancel_event)
                    if outcome is None:
                        logger.debug(f"Cancelled in-flight resolution for {zip_code}")
                        return None
                    mapping, representatives = outcome
            except DistrictLookupError as e:
                logger.warning(f"Batch lookup failed for {zip_code}: [{e.code}] {e.message}")
                return BatchResult(
                    zip_code=zip_code,
                    success=False,
                    processing_time_ms=_elapsed_ms(started),
                    error=e.message,
                    error_code=e.code,
                )
            except Exception as e:
                logger.exception(f"Unexpected error resolving {zip_code}")
                return BatchResult(
                    zip_code=zip_code,
                    success=False,
                    processing_time_ms=_elapsed_ms(started),
                    error=str(e) or type(e).__name__,
                    error_code="UNKNOWN_ERROR",
                )

            return BatchResult(
                zip_code=zip_code,
                success=True,
                mapping=mapping,
                representatives=tuple(representatives),
                processing_time_ms=_elapsed_ms(started),
            )

    async def _resolve_with_representatives(
        self,
        zip_code: str,
        options: LookupOptions | None,
    ) -> tuple[SingleDistrictMapping | MultiDistrictMapping, list[RepresentativeRecord]]:
        mapping = await self.resolver.resolve(zip_code, options)
        representatives = await representatives_for_mapping(mapping, self.representatives)
        return mapping, representatives

    def summarize(self, results: Iterable[BatchResult]) -> BatchSummary:
        return summarize(results)

    async def process_all(
        self,
        *,
        max_concurrency: int | None = None,
        batch_size: int | None = None,
        delay_between_batches: float | None = None,
        on_progress: ProgressCallback | None = None,
        on_error: ErrorCallback | None = None,
        options: LookupOptions | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> BatchRunReport:
        """Resolve every ZIP code in the supported universe.

        The universe is the region's 3-digit prefix range plus the known ZIP
        tables, de-duplicated and sorted. Arguments are as for
        :meth:`process_batch`.
        """
        zip_codes = supported_zip_codes(self.region.zip_prefix_range)
        logger.info(f"Starting batch processing of {len(zip_codes)} {self.region.name} ZIP codes")

        started = time.perf_counter()
        results = await self.process_batch(
            zip_codes,
            max_concurrency=max_concurrency,
            batch_size=batch_size,
            delay_between_batches=delay_between_batches,
            on_progress=on_progress,
            on_error=on_error,
            options=options,
            cancel_event=cancel_event,
        )
        total_time_ms = _elapsed_ms(started)

        summary = summarize(results)
        logger.info(
            f"Batch processing completed: {summary.processed} processed, {summary.successful} succeeded, "
            f"{summary.failed} failed in {total_time_ms / 1000:.1f}s"
        )
        return BatchRunReport(
            summary=summary,
            results=results,
            total_time_ms=total_time_ms,
            average_time_per_zip_ms=total_time_ms / len(results) if results else 0.0,
            success_rate=summary.success_rate,
        )

    def validate_results(self, results: Iterable[BatchResult]) -> ValidationReport:
        """Check successful results against the mapping invariants.

        A success is valid when its location fields are present, its
        coordinates lie in the region, every district number is in range and
        at least one federal representative is attached. Failed results are
        invalid with their own error as the reason.
        """
        valid: list[BatchResult] = []
        invalid: list[BatchResult] = []
        failures: list[ValidationFailure] = []

        for result in results:
            if not result.success:
                reason = result.error or "Unknown error"
                invalid.append(result)
            else:
                reason = self._rejection_reason(result)
                if reason is None:
                    valid.append(result)
                    continue
                invalid.append(dataclasses.replace(result, success=False, error=reason, error_code="VALIDATION_FAILED"))
            failures.append(ValidationFailure(result.zip_code, reason))

        counts = Counter(f.reason for f in failures)
        return ValidationReport(
            valid=valid,
            invalid=invalid,
            failures=failures,
            common_errors=[reason for reason, _count in counts.most_common(COMMON_ERROR_LIMIT)],
        )

    def _rejection_reason(self, result: BatchResult) -> str | None:
        mapping = result.mapping
        if mapping is None:
            return "missing district mapping"
        if not (mapping.zip_code and mapping.county and mapping.city):
            return "missing location fields"
        if not self.region.contains(mapping.longitude, mapping.latitude):
            return "coordinates outside supported region"
        for category in DistrictCategory:
            numbers = mapping.district_numbers(category)
            if not numbers or not all(self.region.district_in_range(category, n) for n in numbers):
                return f"{category.value.replace('_', ' ')} district out of range"
        if not any(rep.level == RepresentativeLevel.FEDERAL for rep in result.representatives):
            return "no federal representatives"
        return None

    def export_results(self, results: Iterable[BatchResult], output_path: str | Path | None = None) -> str:
        """Render results as a JSON snapshot, optionally writing it to disk.

        Args:
            results: Batch results to export.
            output_path: File to write; nothing is written when omitted. A
                relative path is placed under ``export_dir`` when one is set.

        Returns:
            The JSON snapshot text.
        """
        results = list(results)
        successful = sum(1 for r in results if r.success)
        snapshot = ExportSnapshot(
            metadata=ExportMetadata(
                export_date=datetime.now(UTC),
                total_zip_codes=len(results),
                successful_mappings=successful,
                failed_mappings=len(results) - successful,
            ),
            zip_code_mappings=[_export_row(r) for r in results],
        )
        document = snapshot.model_dump(by_alias=True)

        if output_path is not None:
            path = Path(output_path)
            if self.export_dir is not None and not path.is_absolute():
                path = self.export_dir / path
            export = export_snapshot(document, path, record_count=len(results))
            logger.info(f"Exported {export.record_count} ZIP mappings to {export.output_path}")
        return render_json(document)


def _export_row(result: BatchResult) -> ExportedZipMapping:
    return ExportedZipMapping(
        zip_code=result.zip_code,
        success=result.success,
        processing_time=result.processing_time_ms,
        districts=result.mapping if result.success else None,
        representatives=[
            ExportedRepresentative(
                id=rep.id,
                name=rep.name,
                title=rep.title,
                level=rep.level,
                chamber=rep.chamber,
                district=rep.district,
                party=rep.party,
            )
            for rep in result.representatives
        ]
        if result.success
        else None,
        error=result.error,
    )


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


async def _run_until_cancelled(work: Awaitable[_T], cancel_event: asyncio.Event) -> _T | None:
    """Await ``work`` unless ``cancel_event`` fires first, in which case cancel it and return None."""
    task = asyncio.ensure_future(work)
    stopper = asyncio.ensure_future(cancel_event.wait())
    try:
        await asyncio.wait({task, stopper}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        stopper.cancel()

    if task.done():
        return task.result()
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task
    return None
