"""
Pipeline orchestration: run the selected layers over one source text.

Analyze mode runs every layer against the original text. Fix mode threads the
text through the layers in ascending order: each layer detects on, and fixes,
the output of the previous one. A failing layer is recorded and skipped; fatal
conditions (bad layer selection, empty or oversized input, timeout) raise.
"""

from __future__ import annotations

import logging
import re
import time
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional

from neurolint.config import Config, get_default_config
from neurolint.context import AnalysisContext, create_context
from neurolint.errors import (
    EmptySourceError,
    LayerExecutionError,
    OversizedInputError,
    PipelineTimeoutError,
    UnsupportedLanguageError,
)
from neurolint.findings.models import (
    AnalysisResult,
    AppliedFix,
    Issue,
    LayerError,
    Severity,
    Summary,
)
from neurolint.layers.base import Layer
from neurolint.layers.registry import LAYER_REGISTRY
from neurolint.layers.security import summarize
from neurolint.selector import LayerSelection, resolve

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

SEVERITY_PENALTY = {Severity.ERROR: 10, Severity.WARNING: 5, Severity.INFO: 1}

# Layers suggested when nothing was found
DEFAULT_RECOMMENDED_LAYERS = (1, 2, 3)

_CLIENT_HOOKS = re.compile(r"\b(?:useState|useEffect|useContext)\b")


class Mode(str, Enum):
    ANALYZE = "analyze"
    FIX = "fix"


def issue_sort_key(issue: Issue):
    return (issue.layer, issue.location.line, issue.location.column, issue.rule_name)


def quality_score(issues: List[Issue]) -> int:
    penalty = sum(SEVERITY_PENALTY[issue.severity] for issue in issues)
    return max(0, 100 - penalty)


def readiness_score(issues: List[Issue], source: str = "") -> int:
    """
    How ready the file is for server rendering: 100, minus 20 when it uses
    client hooks without a "use client" directive, 10 per hydration (layer 4)
    issue and 5 per accessibility issue. Floored at 0.
    """
    score = 100
    has_directive = "'use client'" in source or '"use client"' in source
    if not has_directive and _CLIENT_HOOKS.search(source):
        score -= 20
    score -= 10 * sum(1 for issue in issues if issue.layer == 4)
    score -= 5 * sum(1 for issue in issues if issue.category == "accessibility")
    return max(0, score)


def build_summary(issues: List[Issue], layers: List[int], filename: str, source: str = "") -> Summary:
    by_layer: Dict[int, List[Issue]] = {n: [] for n in layers}
    by_severity = {s.value: 0 for s in Severity}
    for issue in issues:
        by_layer.setdefault(issue.layer, []).append(issue)
        by_severity[issue.severity.value] += 1
    return Summary(
        total_issues=len(issues),
        issues_by_layer=by_layer,
        issues_by_severity=by_severity,
        filename=filename,
        layers=list(layers),
        quality_score=quality_score(issues),
        readiness_score=readiness_score(issues, source),
        recommended_layers=sorted({issue.layer for issue in issues}) or list(DEFAULT_RECOMMENDED_LAYERS),
    )


class Pipeline:
    """
    Runs layers over a source text.

    The clock is injectable so the timeout can be exercised deterministically.
    A Pipeline holds no per-call state and can be shared.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        clock: Clock = time.monotonic,
        layers: Mapping[int, Layer] = LAYER_REGISTRY,
    ) -> None:
        self.config = config or get_default_config()
        self._clock = clock
        self._layers = layers

    def run(
        self,
        source: str,
        layers: LayerSelection = None,
        mode: Mode = Mode.ANALYZE,
        context: Optional[AnalysisContext] = None,
        *,
        platform: Optional[str] = None,
    ) -> AnalysisResult:
        context = context or AnalysisContext()
        requested = self.config.default_layers if layers is None else layers
        numbers = resolve(requested, context, source)

        if not source.strip():
            raise EmptySourceError(context.filename)
        size = len(source.encode("utf-8"))
        if size > self.config.max_input_bytes:
            raise OversizedInputError(size, self.config.max_input_bytes)

        metadata = {
            "platform": platform,
            "filename": context.filename,
            "layersAnalyzed": numbers,
            "mode": mode.value,
        }

        if context.language is None:
            notice = UnsupportedLanguageError(context.filename)
            logger.info("%s; reporting zero issues", notice)
            return AnalysisResult(
                success=True,
                summary=build_summary([], numbers, context.filename, source),
                warnings=[str(notice)],
                metadata={**metadata, "executionTime": 0.0},
            )

        started = self._clock()
        current = source
        issues: List[Issue] = []
        applied: List[AppliedFix] = []
        layer_errors: List[LayerError] = []
        completed: List[int] = []

        for number in numbers:
            self._check_budget(self._clock() - started, context, completed, issues)

            layer = self._layers[number]
            layer_context = context.with_prior_issues(issues)
            try:
                found, fixed, layer_applied, failure = self._run_layer(layer, current, mode, layer_context)
            except Exception as exc:
                error = LayerExecutionError(number, exc)
                logger.warning("%s (file %s, platform %s)", error, context.filename, platform, exc_info=True)
                layer_errors.append(LayerError(layer=number, message=str(error)))
                completed.append(number)
                continue

            if failure is not None:
                layer_errors.append(LayerError(layer=number, message=failure))
            issues.extend(found)
            applied.extend(layer_applied)
            current = fixed
            completed.append(number)
            logger.debug(
                "Layer %d (%s) on %s: %d issue(s), %d fix(es), %.3fs elapsed",
                number,
                layer.name,
                context.filename,
                len(found),
                len(layer_applied),
                self._clock() - started,
            )

        execution_time = self._clock() - started
        # The last layer may have overrun the budget too
        self._check_budget(execution_time, context, completed, issues)
        issues.sort(key=issue_sort_key)
        logger.info(
            "Analyzed %s with layers %s: %d issue(s) in %.3fs (platform=%s)",
            context.filename,
            numbers,
            len(issues),
            execution_time,
            platform,
        )
        return AnalysisResult(
            success=True,
            issues=issues,
            summary=build_summary(issues, numbers, context.filename, source),
            transformed_code=current if mode is Mode.FIX else None,
            applied_fixes=applied,
            layer_errors=layer_errors,
            security=summarize(issues) if 8 in numbers else None,
            metadata={**metadata, "executionTime": round(execution_time, 6)},
        )

    def _check_budget(
        self, elapsed: float, context: AnalysisContext, completed: List[int], issues: List[Issue]
    ) -> None:
        budget = self.config.timeout_seconds
        if budget is not None and elapsed > budget:
            logger.warning("Timeout after %.2fs on %s; completed layers %s", elapsed, context.filename, completed)
            raise PipelineTimeoutError(elapsed, budget, list(completed), sorted(issues, key=issue_sort_key))

    def _run_layer(self, layer: Layer, text: str, mode: Mode, context: AnalysisContext):
        """
        Detect (and in fix mode, fix) one layer.

        Returns (issues, text after the layer, applied fixes, failure note). A
        structural fix failure keeps the layer's issues and leaves the text as it was.
        """
        file_context = create_context(text, context)
        found = [
            issue for issue in layer.detect_in(file_context) if issue.rule_name not in self.config.disabled_rules
        ]
        if mode is not Mode.FIX or not found:
            return found, text, [], None

        result = layer.apply_fixes(text, found, context, clock=self._clock)
        if not result.success:
            return found, text, [], f"Layer {layer.number} fixes were not applied: {result.error}"
        return found, result.code, list(result.applied_fixes), None
