"""Node connection settings via dataclass (no pydantic -- instant construction)."""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

_DEFAULT_NODE_URL = "http://127.0.0.1:9550"
_DEFAULT_TIMEOUT = 30.0


@dataclass
class NodeConfig:
    """Where and how to reach a Shinkai node.

    ``node_url`` and ``timeout`` can be overridden via environment
    variables (``SHINKAI_NODE_URL``, ``SHINKAI_NODE_TIMEOUT``), a
    ``config.toml`` in ``data_dir``, or constructor arguments.

    Priority (highest wins): constructor arg > env var > config.toml > default.
    """

    node_url: str | None = None
    timeout: float | None = None
    data_dir: Path | str | None = None

    def __post_init__(self) -> None:
        # SHINKAI_HOME env var overrides ~/.shinkai (useful for testing / isolation).
        if self.data_dir is None:
            shinkai_home = os.getenv("SHINKAI_HOME")
            self.data_dir = Path(shinkai_home) if shinkai_home else Path.home() / ".shinkai"
        else:
            self.data_dir = Path(self.data_dir)

        file_values: dict = {}
        config_path = self.data_dir / "config.toml"
        if config_path.exists():
            file_values = self._load_config_file(config_path)

        if self.node_url is None:
            self.node_url = (
                os.getenv("SHINKAI_NODE_URL")
                or file_values.get("url")
                or _DEFAULT_NODE_URL
            )

        if self.timeout is None:
            env_timeout = os.getenv("SHINKAI_NODE_TIMEOUT")
            if env_timeout:
                self.timeout = _parse_timeout(env_timeout, "SHINKAI_NODE_TIMEOUT")
            else:
                self.timeout = _parse_timeout(
                    file_values.get("timeout", _DEFAULT_TIMEOUT), "config.toml [node] timeout"
                )

        parsed = urlparse(self.node_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(
                f"Invalid node_url '{self.node_url}'. Must be an http(s) URL."
            )
        self.node_url = self.node_url.rstrip("/")

        if self.timeout <= 0:
            raise ValueError(f"Invalid timeout {self.timeout}. Must be positive.")

    def _load_config_file(self, path: Path) -> dict:
        """Load the optional ``[node]`` table of config.toml."""
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except Exception:
            logger.warning("Failed to load config file %s", path, exc_info=True)
            return {}
        node = data.get("node", {})
        if not isinstance(node, dict):
            logger.warning("Ignoring non-table [node] entry in %s", path)
            return {}
        return node


def _parse_timeout(value: object, source: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid timeout {value!r} from {source}. Must be a number.") from exc
