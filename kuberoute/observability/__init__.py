"""Logging and Prometheus metrics for kuberoute."""
