"""Prune stale Cloudflare Pages deployments."""

__version__ = "0.1.0"
