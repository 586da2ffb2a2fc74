"""
Deployment configuration assembled once at process start.

Replaces the module-level config object of a JS deployment framework with
an explicitly built DeploymentConfig handed to the deployer and the checks.
"""

import os
import re
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
from dotenv import load_dotenv

from .errors import ConfigurationError
from .networks import NetworkProfile, build_profile, default_networks, validate_networks
from .wallet import DEFAULT_SECRET_PATH

logger = logging.getLogger(__name__)

DEFAULT_NETWORK = "development"
DEFAULT_BUILD_DIR = "build/contracts"
DEFAULT_REGISTRY_PATH = "deployments.json"

_VERSION_RE = re.compile(r'(\d+)\.(\d+)\.(\d+)')


def _parse_version(text: str) -> Optional[Tuple[int, int, int]]:
    match = _VERSION_RE.search(text)
    if not match:
        return None
    major, minor, patch = (int(part) for part in match.groups())
    return major, minor, patch


@dataclass(frozen=True)
class CompilerPin:
    """Compiler version constraint in caret form, e.g. ``^0.6.8``"""
    name: str
    version: str

    def allows(self, version: str) -> bool:
        """
        Check a compiler version string against the pin.

        Caret ranges keep the left-most non-zero component fixed, so
        ``^0.6.8`` allows 0.6.8 up to but excluding 0.7.0.
        """
        wanted = _parse_version(self.version)
        found = _parse_version(version)
        if wanted is None or found is None:
            return False
        if not self.version.startswith('^'):
            return found == wanted
        if found < wanted:
            return False
        if wanted[0] == 0:
            return found[:2] == wanted[:2]
        return found[0] == wanted[0]


SOLC_PIN = CompilerPin(name="solc", version="^0.6.8")


@dataclass(frozen=True)
class DeploymentConfig:
    network: NetworkProfile
    build_dir: Path
    registry_path: Path
    compiler: CompilerPin = SOLC_PIN


def load_config(
    network_name: Optional[str] = None,
    networks: Optional[Dict[str, Dict[str, Any]]] = None,
    secret_path: Optional[str] = None,
) -> DeploymentConfig:
    """
    Validate the network table and build the configuration for one network.

    Every entry is checked, so a broken entry fails the load even when a
    different network is selected. Nothing here talks to the network.

    Args:
        network_name: Target network, defaults to DEPLOY_NETWORK or development
        networks: Raw network table, defaults to default_networks()
        secret_path: Mnemonic file, defaults to DEPLOY_SECRET_PATH or .secret

    Raises:
        ConfigurationError: On any invalid entry or unreadable secret
    """
    load_dotenv()

    network_name = network_name or os.getenv("DEPLOY_NETWORK", DEFAULT_NETWORK)
    entries = networks if networks is not None else default_networks()
    validate_networks(entries)

    if network_name not in entries:
        raise ConfigurationError(
            f"Unknown network '{network_name}'. Available: {', '.join(sorted(entries))}",
            network=network_name,
        )

    secret_path = secret_path or os.getenv("DEPLOY_SECRET_PATH", DEFAULT_SECRET_PATH)
    profile = build_profile(network_name, entries[network_name], secret_path)

    return DeploymentConfig(
        network=profile,
        build_dir=Path(os.getenv("DEPLOY_BUILD_DIR", DEFAULT_BUILD_DIR)),
        registry_path=Path(os.getenv("DEPLOY_REGISTRY_PATH", DEFAULT_REGISTRY_PATH)),
    )
