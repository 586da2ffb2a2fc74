"""
Compiled contract artifacts.

Reads the JSON files the Solidity toolchain writes to the build directory.
"""

import os
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContractArtifact:
    """Compiled contract as written by the Solidity toolchain"""
    contract_name: str
    abi: List[Dict[str, Any]]
    bytecode: str
    networks: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    compiler_version: Optional[str] = None

    @classmethod
    def load(cls, build_dir: Union[str, Path], contract_name: str) -> "ContractArtifact":
        """Loads a contract artifact from its JSON file in the build directory."""
        file_path = os.path.join(build_dir, f"{contract_name}.json")
        try:
            with open(file_path, 'r') as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise ConfigurationError(
                f"Artifact for {contract_name} not found at {file_path}. Compile the contracts first."
            ) from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Artifact {file_path} is not valid JSON: {e}") from e

        if 'abi' not in data:
            raise ConfigurationError(f"Artifact {file_path} has no 'abi' section")

        compiler = data.get('compiler') or {}
        return cls(
            contract_name=data.get('contractName', contract_name),
            abi=data['abi'],
            bytecode=data.get('bytecode') or "0x",
            networks=data.get('networks') or {},
            compiler_version=compiler.get('version'),
        )

    @property
    def is_deployable(self) -> bool:
        return self.bytecode not in ("", "0x")

    def address_on(self, network_id: int) -> Optional[str]:
        """Address recorded in the artifact itself for a chain id, if any."""
        return self.networks.get(str(network_id), {}).get('address')
