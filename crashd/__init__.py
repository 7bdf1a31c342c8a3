"""Collect diagnostics from an unresponsive Kubernetes cluster by running a diagnostics script."""

__version__ = "0.1.0a0"