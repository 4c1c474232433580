"""Metric models, process metrics registry and exposition"""
