"""Code-hosting record adapters."""

from .pull_requests import convert_pull_request, convert_pull_requests

__all__ = ["convert_pull_request", "convert_pull_requests"]
