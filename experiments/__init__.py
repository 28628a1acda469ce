"""Benchmark problems and configuration for optimiser experiments."""
