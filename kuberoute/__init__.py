"""kuberoute: resource-access façade over the Kubernetes API.

Mutations go live to the API server; reads are served from an informer cache.
"""

__version__ = "0.1.0"
