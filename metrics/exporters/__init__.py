"""Prometheus text encoder and exporters"""
from .prometheus import PrometheusEncoder, encoder_from_tuples

__all__ = [
    'PrometheusEncoder',
    'encoder_from_tuples',
]
