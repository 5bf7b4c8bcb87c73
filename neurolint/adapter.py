"""
Core adapter: the one call surface shared by the CLI, editor integrations and the
web API.

Behaviour depends only on the code, filename/file_path and layer selection.
`platform` is recorded in logs and result metadata and nothing else. Fatal
errors from the engine become result values here (success=False with error and
error_type); nothing below this module converts them.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from neurolint.config import Config, get_default_config
from neurolint.context import DEFAULT_FILENAME, AnalysisContext
from neurolint.errors import (
    EmptySourceError,
    NeurolintError,
    OversizedInputError,
    PipelineTimeoutError,
    SourceDecodeError,
)
from neurolint.findings.models import AnalysisResult, FixResult, Issue, Summary
from neurolint.fixer import FixApplier
from neurolint.layers.registry import all_rules, layer_info
from neurolint.parser import basename
from neurolint.pipeline import Clock, Mode, Pipeline, build_summary
from neurolint.selector import LayerSelection

logger = logging.getLogger(__name__)

Source = Union[str, bytes]
IssueInput = Union[Issue, Mapping[str, Any]]


def decode_source(code: Source) -> str:
    if isinstance(code, bytes):
        try:
            return code.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SourceDecodeError(f"Source is not valid UTF-8: {exc}") from exc
    return code


def make_context(filename: Optional[str], file_path: Optional[str]) -> AnalysisContext:
    """filename and file_path are kept verbatim; only a missing filename is derived."""
    if not filename:
        filename = basename(file_path) if file_path else DEFAULT_FILENAME
    return AnalysisContext(filename=filename, file_path=file_path)


def coerce_issue(item: IssueInput) -> Issue:
    """
    Accept an Issue or its dict form (camelCase or snake_case). "rule" is
    accepted for ruleName, and top-level line/column for location.
    """
    if isinstance(item, Issue):
        return item
    data = dict(item)
    if "ruleName" not in data and "rule_name" not in data and "rule" in data:
        data["ruleName"] = data["rule"]
    data.pop("rule", None)
    if "location" not in data and "line" in data:
        data["location"] = {"line": data.pop("line"), "column": data.pop("column", 1)}
    return Issue.model_validate(data)


class CoreAdapter:
    def __init__(self, config: Optional[Config] = None, clock: Clock = time.monotonic) -> None:
        self.config = config or get_default_config()
        self._clock = clock
        self._pipeline = Pipeline(self.config, clock=clock)

    def analyze(
        self,
        code: Source,
        *,
        filename: Optional[str] = None,
        file_path: Optional[str] = None,
        layers: LayerSelection = None,
        platform: Optional[str] = None,
        apply_fixes: bool = False,
    ) -> AnalysisResult:
        """
        Run the pipeline and return an AnalysisResult; never raises for engine errors.

        With apply_fixes=True the layers run in fix mode and transformed_code holds
        the final text.
        """
        context = make_context(filename, file_path)
        mode = Mode.FIX if apply_fixes else Mode.ANALYZE
        logger.debug("analyze %s (platform=%s, layers=%s, mode=%s)", context.filename, platform, layers, mode.value)
        try:
            text = decode_source(code)
            return self._pipeline.run(text, layers, mode, context, platform=platform)
        except PipelineTimeoutError as exc:
            return self._failure(exc, context, platform, issues=exc.partial_issues, layers=exc.completed_layers)
        except NeurolintError as exc:
            logger.warning("Analysis of %s failed: %s", context.filename, exc)
            return self._failure(exc, context, platform)

    def _failure(
        self,
        exc: NeurolintError,
        context: AnalysisContext,
        platform: Optional[str],
        issues: Sequence[Issue] = (),
        layers: Sequence[int] = (),
    ) -> AnalysisResult:
        issues = list(issues)
        summary = build_summary(issues, list(layers), context.filename) if issues else Summary(filename=context.filename)
        return AnalysisResult(
            success=False,
            issues=issues,
            summary=summary,
            error=str(exc),
            error_type=type(exc).__name__,
            metadata={"platform": platform, "filename": context.filename},
        )

    def apply_fixes(
        self,
        code: Source,
        issues: Sequence[IssueInput],
        *,
        dry_run: bool = False,
        filename: Optional[str] = None,
        file_path: Optional[str] = None,
        platform: Optional[str] = None,
    ) -> FixResult:
        """
        Rewrite code for the given issues.

        With dry_run=True the returned code is the input and applied_fixes lists
        what would change. On failure code is the input, byte for byte.
        """
        context = make_context(filename, file_path)
        logger.debug("apply_fixes %s (platform=%s, %d issue(s))", context.filename, platform, len(issues))
        original = code if isinstance(code, str) else None
        try:
            text = decode_source(code)
            original = text
            if not text.strip():
                raise EmptySourceError(context.filename)
            size = len(text.encode("utf-8"))
            if size > self.config.max_input_bytes:
                raise OversizedInputError(size, self.config.max_input_bytes)
            accepted = [coerce_issue(i) for i in issues]
        except (NeurolintError, ValueError) as exc:
            # pydantic.ValidationError is a ValueError.
            logger.warning("apply_fixes on %s rejected: %s", context.filename, exc)
            return FixResult(
                success=False,
                code=original if original is not None else "",
                original_code=original,
                dry_run=dry_run,
                error=str(exc),
                error_type=type(exc).__name__,
            )

        result = FixApplier(all_rules(), clock=self._clock).apply(
            text, accepted, context, timeout=self.config.timeout_seconds
        )
        if dry_run:
            result = result.model_copy(update={"code": text, "dry_run": True})
        logger.info(
            "apply_fixes %s: %d applied, %d skipped (platform=%s, dry_run=%s)",
            context.filename,
            result.total_fixes,
            len(result.skipped_fixes),
            platform,
            dry_run,
        )
        return result

    def layer_info(self) -> List[Dict[str, Any]]:
        return layer_info()

    def process_file(
        self,
        path: Union[str, Path],
        *,
        layers: LayerSelection = None,
        apply_fixes: bool = False,
        dry_run: bool = False,
        platform: str = "cli",
    ) -> Dict[str, Any]:
        """
        Analyze (and optionally fix) one file on disk and return the CLI JSON shape:
        {success, filePath, layers, issues, issueCount, qualityScore, readinessScore,
        security?, error?, layerErrors?, appliedFixes?, changed?}.

        In fix mode the file is rewritten when its text changed, unless dry_run.
        """
        file_path = str(path)
        try:
            raw = Path(path).read_bytes()
        except OSError as exc:
            logger.warning("Could not read %s: %s", file_path, exc)
            return {
                "success": False,
                "filePath": file_path,
                "layers": [],
                "issues": [],
                "issueCount": 0,
                "error": f"Could not read file: {exc}",
            }

        result = self.analyze(
            raw,
            file_path=file_path,
            layers=layers,
            platform=platform,
            apply_fixes=apply_fixes,
        )
        payload: Dict[str, Any] = {
            "success": result.success,
            "filePath": file_path,
            "layers": list(result.summary.layers),
            "issues": [issue.model_dump(mode="json", by_alias=True, exclude_none=True) for issue in result.issues],
            "issueCount": len(result.issues),
            "qualityScore": result.summary.quality_score,
            "readinessScore": result.summary.readiness_score,
        }
        if result.security is not None:
            payload["security"] = result.security.model_dump(mode="json", by_alias=True)
        if result.error is not None:
            payload["error"] = result.error
        if result.layer_errors:
            payload["layerErrors"] = [e.model_dump(mode="json", by_alias=True) for e in result.layer_errors]
        if apply_fixes:
            payload["appliedFixes"] = [
                fix.model_dump(mode="json", by_alias=True, exclude_none=True) for fix in result.applied_fixes
            ]
            changed = result.transformed_code is not None and result.transformed_code != raw.decode("utf-8", errors="replace")
            payload["changed"] = changed
            if changed and not dry_run and result.success:
                Path(path).write_bytes(result.transformed_code.encode("utf-8"))
                logger.info("Wrote fixes to %s", file_path)
        return payload


_DEFAULT_ADAPTER = CoreAdapter()


def analyze(code: Source, **options: Any) -> AnalysisResult:
    """Module-level shortcut for CoreAdapter().analyze with the default config."""
    return _DEFAULT_ADAPTER.analyze(code, **options)


def apply_fixes(code: Source, issues: Sequence[IssueInput], **options: Any) -> FixResult:
    return _DEFAULT_ADAPTER.apply_fixes(code, issues, **options)

