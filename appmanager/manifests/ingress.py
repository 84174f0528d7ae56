"""Editing of the shared tunnel ingress file.

The file holds one Ingress document per namespace, each opened by a comment
header such as ``# Production Namespace Routes``. Routes are read through a
YAML parse, but written with line edits so that comments, headers and the
layout of unrelated documents survive untouched.
"""
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import yaml

from appmanager.core.logger import get_logger
from appmanager.models.app import Environment
from appmanager.models.ingress import IngressRoute

logger = get_logger(__name__)

SEPARATOR = "---"
ARGOCD_HEADER = "# ArgoCD Namespace Routes"
INGRESS_CLASS = "cloudflare-tunnel"
INGRESS_CLASS_ANNOTATION = "cloudflare-tunnel-ingress-controller.strrl.dev/ingress-class"

ROUTE_INDENT = "    "
HOST_LINE = re.compile(r'^(?P<indent>\s*)-\s+host:\s*(?P<host>\S+)\s*$')


class IngressError(Exception):
    """Raised when the ingress file cannot be read or edited."""


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip())


def _unquote(value: str) -> str:
    return value.strip().strip('"').strip("'")


def section_lines(environment: Environment) -> List[str]:
    """Lines of a new, empty Ingress document for ``environment``."""
    namespace = environment.namespace
    return [
        SEPARATOR,
        environment.section_header,
        "apiVersion: networking.k8s.io/v1",
        "kind: Ingress",
        "metadata:",
        f"  name: cloudflare-tunnel-routes-{namespace}",
        f"  namespace: {namespace}",
        "  annotations:",
        f"    {INGRESS_CLASS_ANNOTATION}: {INGRESS_CLASS}",
        "spec:",
        f"  ingressClassName: {INGRESS_CLASS}",
        "  rules:",
    ]


def route_lines(app: str, host: str, port: int, namespace: str) -> List[str]:
    """Lines of a single route entry under ``rules:``."""
    return [
        f"{ROUTE_INDENT}# {app}: {host} -> {app}.{namespace}:{port}",
        f"{ROUTE_INDENT}- host: {host}",
        f"{ROUTE_INDENT}  http:",
        f"{ROUTE_INDENT}    paths:",
        f"{ROUTE_INDENT}      - path: /",
        f"{ROUTE_INDENT}        pathType: Prefix",
        f"{ROUTE_INDENT}        backend:",
        f"{ROUTE_INDENT}          service:",
        f"{ROUTE_INDENT}            name: {app}",
        f"{ROUTE_INDENT}            port:",
        f"{ROUTE_INDENT}              number: {port}",
    ]


class IngressFile:
    """In-memory copy of the tunnel ingress file."""

    def __init__(self, path: Path, text: str = ""):
        self.path = Path(path)
        self.lines: List[str] = text.splitlines()

    @classmethod
    def load(cls, path: Path) -> "IngressFile":
        """Read the ingress file.

        Raises:
            IngressError: If the file does not exist
        """
        path = Path(path)
        if not path.exists():
            raise IngressError(f"Ingress file not found: {path}")
        return cls(path, path.read_text())

    @property
    def text(self) -> str:
        return "\n".join(self.lines) + "\n" if self.lines else ""

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(self.text)
        logger.info(f"Saved ingress file {self.path}")

    # Reading

    def _documents(self) -> List[Dict[str, Any]]:
        try:
            return [d for d in yaml.safe_load_all(self.text) if isinstance(d, dict)]
        except yaml.YAMLError as exc:
            raise IngressError(f"Failed to parse ingress file {self.path}: {exc}") from exc

    def _rules(self) -> Iterator[Dict[str, Any]]:
        for doc in self._documents():
            if doc.get('kind') != 'Ingress':
                continue
            for rule in (doc.get('spec') or {}).get('rules') or []:
                if isinstance(rule, dict) and rule.get('host'):
                    yield rule

    def hosts(self) -> List[str]:
        """Every routed host, in file order."""
        return [str(rule['host']) for rule in self._rules()]

    def has_host(self, host: str) -> bool:
        return host in self.hosts()

    def list_routes(self, app: Optional[str] = None) -> List[IngressRoute]:
        """Routes whose backend is ``app`` (all routes when app is None)."""
        routes = []
        for rule in self._rules():
            for path in ((rule.get('http') or {}).get('paths') or []):
                service = ((path or {}).get('backend') or {}).get('service') or {}
                number = (service.get('port') or {}).get('number')
                name = service.get('name')
                if not name or not isinstance(number, int):
                    continue
                if app is None or name == app:
                    routes.append(IngressRoute(host=str(rule['host']), service=name, port=number))
                    break
        return routes

    def find_route(self, host: str) -> Optional[IngressRoute]:
        return next((r for r in self.list_routes() if r.host == host), None)

    # Editing

    def _find_line(self, content: str, start: int = 0) -> Optional[int]:
        for idx in range(start, len(self.lines)):
            if self.lines[idx].strip() == content:
                return idx
        return None

    def _next_separator(self, start: int) -> int:
        for idx in range(start, len(self.lines)):
            if self.lines[idx].rstrip() == SEPARATOR:
                return idx
        return len(self.lines)

    def ensure_section(self, environment: Environment) -> bool:
        """Create the environment's Ingress document if missing.

        The new document goes in front of the ArgoCD routes when present,
        otherwise at the end of the file.

        Returns:
            True if a section was created
        """
        if self._find_line(environment.section_header) is not None:
            return False

        block = section_lines(environment)
        argocd_idx = self._find_line(ARGOCD_HEADER)

        if argocd_idx is None:
            if self.lines and self.lines[-1].strip():
                block = [""] + block
            self.lines.extend(block)
        elif argocd_idx > 0 and self.lines[argocd_idx - 1].rstrip() == SEPARATOR:
            self.lines[argocd_idx - 1:argocd_idx - 1] = block + [""]
        else:
            self.lines[argocd_idx:argocd_idx] = block + ["", SEPARATOR]

        logger.info(f"Created {environment.value} namespace section in {self.path}")
        return True

    def add_route(self, app: str, host: str, port: int, environment: Environment) -> IngressRoute:
        """Append a route to the end of the environment's section.

        Raises:
            IngressError: If the host is already routed
        """
        if self.has_host(host):
            raise IngressError(f"Ingress route for {host} already exists")

        self.ensure_section(environment)
        header_idx = self._find_line(environment.section_header)
        end = self._next_separator(header_idx + 1)

        pos = end
        while pos > header_idx + 1 and not self.lines[pos - 1].strip():
            pos -= 1

        previous = self.lines[pos - 1].rstrip()
        if previous.endswith("rules: []"):
            self.lines[pos - 1] = previous[:-len(" []")]
            previous = self.lines[pos - 1]

        block = route_lines(app, host, port, environment.namespace)
        if not previous.endswith("rules:"):
            block = [""] + block
        if pos == end < len(self.lines):
            # Nothing separated the section from the next document
            block = block + [""]
        self.lines[pos:pos] = block

        route = IngressRoute(host=host, service=app, port=port)
        logger.info(f"Added ingress route {route}")
        return route

    def _host_line(self, host: str) -> Optional[int]:
        for idx, line in enumerate(self.lines):
            match = HOST_LINE.match(line)
            if match and _unquote(match.group('host')) == host:
                return idx
        return None

    def remove_route(self, host: str) -> IngressRoute:
        """Remove the route for ``host`` with its leading comment lines.

        Raises:
            IngressError: If no route exists for the host
        """
        route = self.find_route(host)
        host_idx = self._host_line(host)
        if host_idx is None:
            raise IngressError(f"No ingress route found for {host}")

        item_indent = _indent_of(self.lines[host_idx])

        start = host_idx
        while start > 0:
            above = self.lines[start - 1]
            if above.strip().startswith("#") and _indent_of(above) == item_indent:
                start -= 1
            else:
                break

        end = host_idx + 1
        while end < len(self.lines):
            line = self.lines[end]
            if line.rstrip() == SEPARATOR:
                break
            if line.strip() and _indent_of(line) <= item_indent:
                break
            end += 1

        del self.lines[start:end]
        while self.lines and not self.lines[-1].strip():
            self.lines.pop()

        if route is None:
            route = IngressRoute(host=host, service="", port=0)
        logger.info(f"Removed ingress route for {host}")
        return route
