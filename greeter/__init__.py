"""Greeter stack.

Two-tier deployment pattern:
 - a backend responder that answers every request with a fixed greeting and CORS headers
 - a front-end that serves a single-page client which fetches the greeting once
 - a local service registry / gateway that mirrors what the orchestrator does in a cluster
 - Kubernetes descriptors for both tiers

The implementation is intentionally small so it can be audited and explained.
"""
