"""Dex Operator: bootstraps Dex identity brokers from DexServer resources."""

__version__ = "0.1.0"
