"""Ingress route model."""
from dataclasses import dataclass


@dataclass(frozen=True)
class IngressRoute:
    """A domain routed through the tunnel to an app's service port."""

    host: str
    service: str
    port: int

    @property
    def url(self) -> str:
        return f"https://{self.host}"

    def __str__(self) -> str:
        return f"{self.host} -> {self.service}:{self.port}"
