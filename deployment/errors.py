"""
Error classifications for deployment runs.

Every error here is fatal for the run that raised it. Nothing is retried;
the operator re-runs the migration.
"""

from typing import Optional, Dict, Any


class DeploymentToolError(Exception):
    """Base class for deployment tooling errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}


class ConfigurationError(DeploymentToolError):
    """Invalid network entry, secret file or chain id. Raised before network I/O."""

    def __init__(self, message: str, network: Optional[str] = None,
                 field: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.network = network
        self.field = field


class ProviderError(DeploymentToolError):
    """Unreachable endpoint or dropped connection."""

    def __init__(self, message: str, endpoint: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.endpoint = endpoint


class DeploymentError(DeploymentToolError):
    """Contract creation rejected by the chain."""

    def __init__(self, message: str, contract_name: Optional[str] = None,
                 revert_reason: Optional[str] = None,
                 transaction_hash: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.contract_name = contract_name
        self.revert_reason = revert_reason
        self.transaction_hash = transaction_hash


class DeploymentTimeout(DeploymentError):
    """Transaction not mined or confirmed within the configured bound."""


class ContractNotDeployedError(DeploymentToolError):
    """No deployment recorded for a contract on the active network."""

    def __init__(self, message: str, contract_name: Optional[str] = None,
                 network: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.contract_name = contract_name
        self.network = network


class InvariantError(DeploymentToolError, AssertionError):
    """Deployed contract state does not match the expected value."""

    def __init__(self, message: str, contract_name: Optional[str] = None,
                 field: Optional[str] = None, expected: Any = None,
                 actual: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.contract_name = contract_name
        self.field = field
        self.expected = expected
        self.actual = actual


class ContractCallError(DeploymentToolError):
    """Reading a deployed contract failed, e.g. a stale address with no code."""

    def __init__(self, message: str, contract_name: Optional[str] = None,
                 field: Optional[str] = None, address: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.contract_name = contract_name
        self.field = field
        self.address = address
