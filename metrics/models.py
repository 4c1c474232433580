"""Metric data models for the Prometheus text exposition format"""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple, Union

CONTENT_TYPE = "text/plain; version=0.0.4"

POSITIVE_INF = "+Inf"
NEGATIVE_INF = "-Inf"
NAN = "Nan"

# A number, or one of the POSITIVE_INF / NEGATIVE_INF / NAN placeholders
MetricValue = Union[int, float, str]

# (kind, name, help, value) where kind 0 = counter, 1 = gauge
MetricTuple = Tuple[int, str, str, MetricValue]


class MetricType(Enum):
    """Prometheus metric types"""
    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"
    SUMMARY = "summary"
    UNTYPED = "untyped"


@dataclass
class Sample:
    """Single observation of a metric family"""
    value: MetricValue
    labels: Dict[str, str] = field(default_factory=dict)
    timestamp: Optional[int] = None

    def __post_init__(self):
        # Ensure labels is never None
        if self.labels is None:
            self.labels = {}


@dataclass
class Metric:
    """Named metric family carrying one or more samples"""
    name: str
    help_text: str
    metric_type: MetricType = MetricType.GAUGE
    values: List[Sample] = field(default_factory=list)
    skip: bool = False

    def __post_init__(self):
        if self.values is None:
            self.values = []


@dataclass
class TupleConfig:
    """Options for building an encoder from flat metric tuples"""
    prefix: str
    tuples: Sequence[MetricTuple]
    sys_metrics: bool = True
    sys_prefix: Optional[str] = None

    @classmethod
    def from_config(cls, config, tuples: Sequence[MetricTuple]) -> "TupleConfig":
        """Take prefixes and the system metrics switch from a Config"""
        return cls(
            prefix=config.metrics_prefix,
            tuples=tuples,
            sys_metrics=config.sys_metrics,
            sys_prefix=config.sys_prefix
        )


def now_millis() -> int:
    """Current wall-clock time in milliseconds since the epoch"""
    return int(time.time() * 1000)
