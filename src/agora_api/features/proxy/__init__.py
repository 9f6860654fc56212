"""Reverse proxy from ``/proxy/{deployment_id}`` to per-deployment backends."""
