"""Error taxonomy for an aggregation run.

Every error carries the namespace (or environment name) it relates to so the
caller can tell which environment broke the run.
"""

from __future__ import annotations


class AggregationError(Exception):
    """Base class for all errors raised while aggregating applications."""

    def __init__(self, message: str, namespace: str = "") -> None:
        self.namespace = namespace
        self.message = message
        super().__init__(f"[{namespace}] {message}" if namespace else message)


class CatalogReadError(AggregationError):
    """The repository or environment catalog is unreachable or malformed."""


class ClusterQueryError(AggregationError):
    """Listing deployments from the cluster API failed."""


class SelectorResolutionError(AggregationError):
    """A deployment's pod selector could not be converted to a label map."""


class MissingGitURLError(AggregationError):
    """A remote-cluster environment has no source git URL."""


class RemoteFetchError(AggregationError):
    """Cloning or reading a remote environment repository failed."""


class ReportParseError(AggregationError):
    """The release report of a remote environment is malformed."""


class Cancelled(AggregationError):
    """The run was cancelled or its deadline elapsed."""
