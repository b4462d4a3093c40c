from __future__ import annotations

from .orchestrator import ImportOutcome

"""Summary line rendering service.

Format:
SUMMARY rows={decoded} accepted={n} rejected={n} inserted={n} skipped={n}
failed={n} batches={n} elapsed_sec={elapsed}
"""


def _format_seconds(value: float) -> str:
    # 整数値は小数点なし、極小値は指数表記を避ける
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip('0').rstrip('.')
    return f"{value:.3f}".rstrip('0').rstrip('.')


def render_summary_line(outcome: ImportOutcome) -> str:
    """Render a SUMMARY line from an ImportOutcome.

    Examples:
        >>> from location_import.services.validator import ValidationOutcome
        >>> from location_import.services.orchestrator import ImportOutcome, ImportStage
        >>> outcome = ImportOutcome(
        ...     file_name="venues.csv", stage=ImportStage.COMPLETED, decoded_rows=0,
        ...     validation=ValidationOutcome(accepted=(), rejected=()),
        ... )
        >>> render_summary_line(outcome)
        'SUMMARY rows=0 accepted=0 rejected=0 inserted=0 skipped=0 failed=0 batches=0 elapsed_sec=0'
    """
    result = outcome.result
    return (
        f"SUMMARY rows={outcome.decoded_rows} "
        f"accepted={len(outcome.validation.accepted)} "
        f"rejected={len(outcome.validation.rejected)} "
        f"inserted={result.success_count} "
        f"skipped={result.skipped_count} "
        f"failed={len(result.failed_rows)} "
        f"batches={result.total_batches} "
        f"elapsed_sec={_format_seconds(outcome.elapsed_seconds)}"
    )
