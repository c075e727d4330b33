"""Aggregate application deployments across Kubernetes environments."""

__version__ = "0.1.0"
