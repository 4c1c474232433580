"""Prometheus text exposition encoder"""
import decimal
import math
import numbers
import re
import threading
from typing import Any, List, Mapping, Optional, Sequence, Tuple
from metrics.models import (
    Metric, MetricTuple, MetricType, MetricValue, Sample, TupleConfig,
    NAN, NEGATIVE_INF, POSITIVE_INF,
)
from logging_config import get_logger


logger = get_logger(__name__)

# Backslashes that do not already start a \n escape
_STRAY_BACKSLASH = re.compile(r"\\(?!n)")

TUPLE_KINDS = {
    0: MetricType.COUNTER,
    1: MetricType.GAUGE,
}


def escape_string(value: Any) -> str:
    """Escape a metric name or help text.

    Stray backslashes are doubled first, then real newlines become the
    two-character sequence ``\\n``. Existing ``\\n`` escapes are left alone,
    so escaping an already escaped string is a no-op.
    """
    if value is None:
        return ""
    text = value if isinstance(value, str) else str(value)
    return _STRAY_BACKSLASH.sub(r"\\\\", text).replace("\n", "\\n")


def escape_label_value(value: Any) -> str:
    """Escape a label value; non-string values are rendered as plain text"""
    if not isinstance(value, str):
        return str(value)
    return escape_string(value).replace('"', '\\"')


def format_value(value: MetricValue) -> str:
    """Render a sample value, mapping NaN and infinities to their exposition spelling"""
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, decimal.Decimal):
        if value.is_nan():
            return NAN
        if value.is_infinite():
            return NEGATIVE_INF if value.is_signed() else POSITIVE_INF
        return str(value)
    if isinstance(value, numbers.Real):
        if math.isnan(value):
            return NAN
        if math.isinf(value):
            return POSITIVE_INF if value > 0 else NEGATIVE_INF
    return str(value)


def format_labels(labels: Mapping[str, Any]) -> str:
    if not labels:
        return ""
    pairs = [f'{key}="{escape_label_value(value)}"' for key, value in labels.items()]
    return "{" + ",".join(pairs) + "}"


def format_sample(name: str, sample: Sample) -> str:
    line = f"{name}{format_labels(sample.labels)} {format_value(sample.value)}"
    if sample.timestamp is not None:
        line += f" {sample.timestamp}"
    return line.strip()


class PrometheusEncoder:
    """Ordered collection of metric families rendered to the text exposition format"""

    def __init__(self, prefix: str = ""):
        self._prefix = prefix
        self._metrics: List[Metric] = []
        self._lock = threading.Lock()

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def metrics(self) -> Tuple[Metric, ...]:
        with self._lock:
            return tuple(self._metrics)

    def append(self, *metrics: Metric) -> None:
        """Append metric families in call order.

        Names are not checked for collisions: appending the same family twice
        renders two independent HELP/TYPE blocks.
        """
        with self._lock:
            self._metrics.extend(metrics)

    add = append

    def render(self) -> str:
        """Render every non-skipped metric family, in append order"""
        blocks = []
        for metric in self.metrics:
            if metric.skip:
                continue
            blocks.append(self._render_metric(metric))
        return "".join(blocks)

    def _render_metric(self, metric: Metric) -> str:
        name = self._prefix + escape_string(metric.name)
        metric_type = metric.metric_type.value if isinstance(metric.metric_type, MetricType) else metric.metric_type
        lines = [
            f"# HELP {name} {escape_string(metric.help_text)}",
            f"# TYPE {name} {metric_type}",
        ]
        for sample in metric.values or []:
            lines.append(format_sample(name, sample))
        return "\n".join(lines).strip() + "\n\n"

    @classmethod
    async def from_tuples(cls, cfg: TupleConfig, collector=None) -> "PrometheusEncoder":
        """Build an encoder from flat ``(kind, name, help, value)`` tuples.

        When ``cfg.sys_metrics`` is set, a process metrics snapshot is appended
        first, named with ``cfg.sys_prefix``; the tuple metrics follow it.
        """
        metrics = [metric_from_tuple(t) for t in cfg.tuples]
        encoder = cls(cfg.prefix)
        if cfg.sys_metrics:
            if collector is None:
                from metrics.registry import get_default_collector
                collector = get_default_collector()
            encoder.append(*await collector.collect(cfg.sys_prefix))
        encoder.append(*metrics)
        logger.debug("Built encoder from tuples", prefix=cfg.prefix, metrics_count=len(encoder.metrics))
        return encoder


def metric_from_tuple(item: MetricTuple) -> Metric:
    kind, name, help_text, value = item
    metric_type = TUPLE_KINDS.get(kind)
    if metric_type is None:
        raise ValueError(f"Unsupported metric kind {kind!r} for {name!r}: expected 0 (counter) or 1 (gauge)")
    return Metric(
        name=name,
        help_text=help_text,
        metric_type=metric_type,
        values=[Sample(value=value)]
    )


async def encoder_from_tuples(prefix: str, tuples: Sequence[MetricTuple], sys_metrics: bool = True,
                              sys_prefix: Optional[str] = None, collector=None) -> PrometheusEncoder:
    """Positional shorthand for PrometheusEncoder.from_tuples"""
    cfg = TupleConfig(prefix=prefix, tuples=tuples, sys_metrics=sys_metrics, sys_prefix=sys_prefix)
    return await PrometheusEncoder.from_tuples(cfg, collector=collector)
