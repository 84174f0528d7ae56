"""Data models for app-manager."""
from appmanager.models.app import (
    AppSpec,
    Environment,
    ResourceSpec,
    parse_environment,
    parse_port,
    parse_replicas,
    validate_app_name,
)
from appmanager.models.ingress import IngressRoute

__all__ = [
    'AppSpec',
    'Environment',
    'ResourceSpec',
    'IngressRoute',
    'parse_environment',
    'parse_port',
    'parse_replicas',
    'validate_app_name',
]
