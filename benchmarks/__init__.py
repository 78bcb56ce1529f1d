"""Benchmark suite for geograd gradient functions.

Usage:
    python -m benchmarks.gradient_call
"""
