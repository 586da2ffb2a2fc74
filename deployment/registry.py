"""
Deployment records per network.

The registry is a JSON file keyed by network name, then contract name,
holding every deployment in the order it happened:

    {"testnet": {"DCIP": [{"address": "0x...", ...}, ...]}}
"""

import os
import json
import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeploymentRecord:
    contract_name: str
    address: str
    transaction_hash: str
    block_number: int
    network_id: int
    deployed_at: str

    @classmethod
    def now(cls, **kwargs: Any) -> "DeploymentRecord":
        return cls(deployed_at=datetime.now(timezone.utc).isoformat(), **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploymentRecord":
        return cls(
            contract_name=data['contract_name'],
            address=data['address'],
            transaction_hash=data['transaction_hash'],
            block_number=int(data['block_number']),
            network_id=int(data['network_id']),
            deployed_at=data['deployed_at'],
        )


class DeploymentRegistry:
    """JSON backed history of deployments"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read(self) -> Dict[str, Dict[str, List[Dict[str, Any]]]]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Deployment registry {self.path} is unreadable: {e}", field='registry') from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Deployment registry {self.path} must hold a JSON object", field='registry')
        return data

    def _write(self, data: Dict[str, Dict[str, List[Dict[str, Any]]]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + '.tmp')
        with open(tmp_path, 'w') as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, self.path)

    def validate(self) -> None:
        """Fails if the registry exists but cannot be parsed."""
        self._read()

    def record(self, network: str, record: DeploymentRecord) -> None:
        data = self._read()
        data.setdefault(network, {}).setdefault(record.contract_name, []).append(record.to_dict())
        self._write(data)
        logger.info(f"Recorded {record.contract_name} at {record.address} on {network}")

    def history(self, network: str, contract_name: str) -> List[DeploymentRecord]:
        entries = self._read().get(network, {}).get(contract_name, [])
        return [DeploymentRecord.from_dict(entry) for entry in entries]

    def latest(self, network: str, contract_name: str) -> Optional[DeploymentRecord]:
        """Most recently deployed instance of a contract on a network."""
        history = self.history(network, contract_name)
        return history[-1] if history else None
