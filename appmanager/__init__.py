"""app-manager: Kubernetes app configuration and deployment for the tunnel cluster."""

__version__ = "0.1.0"
