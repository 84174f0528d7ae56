"""Shared test fixtures for app-manager tests."""
from pathlib import Path

import pytest

from appmanager.core import config as config_module
from appmanager.core.config import AppManagerConfig, set_config

SAMPLE_INGRESS = """\
# Cloudflare tunnel routes for every namespace
---
# Production Namespace Routes
apiVersion: networking.k8s.io/v1
kind: Ingress
metadata:
  name: cloudflare-tunnel-routes-production
  namespace: production
  annotations:
    cloudflare-tunnel-ingress-controller.strrl.dev/ingress-class: cloudflare-tunnel
spec:
  ingressClassName: cloudflare-tunnel
  rules:
    # api: api.winit.dev -> api.production:3000
    - host: api.winit.dev
      http:
        paths:
          - path: /
            pathType: Prefix
            backend:
              service:
                name: api
                port:
                  number: 3000

---
# ArgoCD Namespace Routes
apiVersion: networking.k8s.io/v1
kind: Ingress
metadata:
  name: cloudflare-tunnel-routes-argocd
  namespace: argocd
spec:
  ingressClassName: cloudflare-tunnel
  rules:
    - host: argocd.winit.dev
      http:
        paths:
          - path: /
            pathType: Prefix
            backend:
              service:
                name: argocd-server
                port:
                  number: 80
"""


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep every test away from real config files and the real cwd."""
    for name in AppManagerConfig.field_names():
        monkeypatch.delenv(f"APP_MANAGER_{name.upper()}", raising=False)
    monkeypatch.delenv("APP_MANAGER_CONFIG", raising=False)
    monkeypatch.setattr(config_module, "CONFIG_PATHS", [])
    monkeypatch.setenv("APP_MANAGER_WORK_DIR", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def config(tmp_path):
    """Default config with the manifest checkout under tmp_path."""
    cfg = AppManagerConfig(work_dir=str(tmp_path))
    set_config(cfg)
    return cfg


@pytest.fixture
def ingress_text():
    return SAMPLE_INGRESS


@pytest.fixture
def k8s_checkout(config) -> Path:
    """A manifest checkout holding only the shared ingress file."""
    checkout = config.k8s_checkout
    ingress = checkout / config.ingress_file
    ingress.parent.mkdir(parents=True)
    ingress.write_text(SAMPLE_INGRESS)
    return checkout
