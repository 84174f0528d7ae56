"""Application record rendered into Kubernetes manifests."""
import re
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

APP_NAME_PATTERN = re.compile(r'^[a-z0-9-]+$')

DEFAULT_REPLICAS = 1
DEFAULT_PORT = 3000
DEFAULT_MEMORY_REQUEST = "256Mi"
DEFAULT_MEMORY_LIMIT = "512Mi"
DEFAULT_CPU_REQUEST = "100m"
DEFAULT_CPU_LIMIT = "250m"

HEALTH_PATH = "/health"


class Environment(str, Enum):
    """Deployment environment; doubles as the Kubernetes namespace."""

    PRODUCTION = "production"
    STAGING = "staging"

    @property
    def namespace(self) -> str:
        return self.value

    @property
    def tag_suffix(self) -> str:
        """Suffix used in release tags (v1.2.3-prod, v1.2.3-app-staging)."""
        return "prod" if self is Environment.PRODUCTION else "staging"

    @property
    def section_header(self) -> str:
        """Comment line opening this environment's block in the ingress file."""
        return f"# {self.value.capitalize()} Namespace Routes"

    @classmethod
    def from_input(cls, value: str) -> Optional["Environment"]:
        """Resolve user input (production/prod/staging/stage), None if unknown."""
        lowered = value.strip().lower()
        if lowered in ("production", "prod"):
            return cls.PRODUCTION
        if lowered in ("staging", "stage"):
            return cls.STAGING
        return None


class ResourceSpec(BaseModel):
    """Container resource requests and limits, kept as Kubernetes quantities."""

    model_config = ConfigDict(extra='forbid')

    memory_request: str = DEFAULT_MEMORY_REQUEST
    memory_limit: str = DEFAULT_MEMORY_LIMIT
    cpu_request: str = DEFAULT_CPU_REQUEST
    cpu_limit: str = DEFAULT_CPU_LIMIT

    def summary(self) -> str:
        return (
            f"{self.memory_request}/{self.memory_limit} memory, "
            f"{self.cpu_request}/{self.cpu_limit} CPU"
        )


class AppSpec(BaseModel):
    """Everything needed to render an app's Deployment, Service and README."""

    model_config = ConfigDict(extra='forbid')

    name: str = Field(..., description="Lowercase app name, also the service name")
    environment: Environment = Environment.PRODUCTION
    replicas: int = Field(DEFAULT_REPLICAS, ge=1)
    resources: ResourceSpec = Field(default_factory=ResourceSpec)
    container_port: int = Field(DEFAULT_PORT, ge=1, le=65535)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        """App names become DNS labels, so keep them to lowercase and hyphens."""
        if not v:
            raise ValueError("App name cannot be empty")
        if not APP_NAME_PATTERN.match(v):
            raise ValueError("App name must be lowercase alphanumeric with hyphens only")
        return v

    @property
    def namespace(self) -> str:
        return self.environment.namespace

    @property
    def is_frontend(self) -> bool:
        return self.container_port == 80

    @property
    def component(self) -> str:
        return "frontend" if self.is_frontend else "backend"

    @property
    def container_name(self) -> str:
        return "nginx" if self.is_frontend else "app"

    @property
    def liveness_initial_delay(self) -> int:
        # nginx is ready almost instantly, app servers need warm-up
        return 10 if self.is_frontend else 30

    def image(self, registry: str) -> str:
        return f"{registry}/{self.name}:latest"


def validate_app_name(name: str) -> Optional[str]:
    """Return an error message for an invalid app name, None if valid."""
    if not name:
        return "App name cannot be empty"
    if not APP_NAME_PATTERN.match(name):
        return "App name must be lowercase alphanumeric with hyphens only"
    return None


def parse_environment(
    value: str,
    current: Optional[Environment] = None,
) -> Tuple[Environment, Optional[str]]:
    """Resolve the environment prompt answer.

    Empty input keeps ``current`` (editing) or falls back to production.
    Unknown values fall back to production with a warning.
    """
    if not value.strip():
        return current or Environment.PRODUCTION, None

    env = Environment.from_input(value)
    if env is None:
        return Environment.PRODUCTION, "Invalid environment. Using production"
    return env, None


def parse_replicas(value: str, current: Optional[int] = None) -> Tuple[int, Optional[str]]:
    """Resolve the replica prompt answer; anything but a positive integer means 1."""
    if not value.strip():
        return current or DEFAULT_REPLICAS, None

    text = value.strip()
    if not re.fullmatch(r"[0-9]+", text) or int(text) < 1:
        return DEFAULT_REPLICAS, f"Invalid input, using default: {DEFAULT_REPLICAS}"
    return int(text), None


def parse_port(
    value: str,
    current: Optional[int] = None,
    default: int = DEFAULT_PORT,
) -> Tuple[int, Optional[str]]:
    """Resolve a port prompt answer; non-numeric input falls back to ``default``."""
    if not value.strip():
        return current or default, None

    text = value.strip()
    if not re.fullmatch(r"[0-9]+", text) or not 1 <= int(text) <= 65535:
        return default, f"Invalid port, using default: {default}"
    return int(text), None
