"""
Post-deployment assertions.

Read-only checks against the most recently deployed instance of a
contract. They never send transactions and can run any number of times.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union
from web3 import Web3
from web3.contract import Contract
from web3.exceptions import ABIFunctionNotFound, BadFunctionCallOutput, ContractLogicError

from .artifacts import ContractArtifact
from .errors import (
    ConfigurationError,
    ContractCallError,
    ContractNotDeployedError,
    DeploymentToolError,
    InvariantError,
)
from .registry import DeploymentRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExpectedInvariant:
    """Expected value of one field of a deployed contract"""
    contract_name: str
    field: str
    expected: Any
    message: Optional[str] = None


PRESALE_INVARIANTS = (
    ExpectedInvariant("Presale", "rate", 750, "The rate wasn't 750"),
    ExpectedInvariant("PrivateSale", "getName", "my name", "The name wasn't 'my name'"),
)


@dataclass
class CheckResult:
    invariant: ExpectedInvariant
    passed: bool
    actual: Any = None
    error: Optional[Exception] = None


class DeploymentReader:
    """Looks up deployed contracts and reads their state"""

    def __init__(self, w3: Web3, network: str, registry: DeploymentRegistry,
                 build_dir: Union[str, Path]):
        self.w3 = w3
        self.network = network
        self.registry = registry
        self.build_dir = build_dir

    def get_deployed_instance(self, contract_name: str) -> Contract:
        """
        Locate the most recently deployed instance of a contract.

        The registry is consulted first. Artifacts that carry their own
        per-chain address (the `networks` section) are the fallback.
        """
        artifact = ContractArtifact.load(self.build_dir, contract_name)

        record = self.registry.latest(self.network, contract_name)
        address = record.address if record is not None else artifact.address_on(self.w3.eth.chain_id)

        if not address:
            raise ContractNotDeployedError(
                f"{contract_name} has not been deployed to '{self.network}'",
                contract_name=contract_name, network=self.network,
            )

        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=artifact.abi)

    def read(self, instance: Contract, field: str) -> Any:
        """Reads a public state variable or calls a no-argument view accessor."""
        try:
            accessor = getattr(instance.functions, field)
        except ABIFunctionNotFound as e:
            raise ConfigurationError(f"Contract at {instance.address} has no field or accessor '{field}'") from e
        try:
            return accessor().call()
        except (BadFunctionCallOutput, ContractLogicError) as e:
            raise ContractCallError(
                f"Reading '{field}' from {instance.address} failed: {e}. "
                "The address may be stale, e.g. after a local chain restart.",
                field=field, address=instance.address,
            ) from e

    def check(self, invariant: ExpectedInvariant) -> Any:
        """
        Compare one field against its expected value.

        Returns:
            The value read from the chain

        Raises:
            InvariantError: On mismatch
            ContractCallError: If the contract cannot be read
        """
        instance = self.get_deployed_instance(invariant.contract_name)
        actual = self.read(instance, invariant.field)

        if actual != invariant.expected:
            prefix = f"{invariant.message}: " if invariant.message else ""
            raise InvariantError(
                f"{prefix}{invariant.contract_name}.{invariant.field} expected "
                f"{invariant.expected!r}, got {actual!r}",
                contract_name=invariant.contract_name,
                field=invariant.field,
                expected=invariant.expected,
                actual=actual,
            )

        logger.info(f"{invariant.contract_name}.{invariant.field} == {actual!r}")
        return actual

    def check_all(self, invariants: Sequence[ExpectedInvariant] = PRESALE_INVARIANTS) -> List[CheckResult]:
        """Runs every check, reporting failures without stopping at the first one."""
        results = []
        for invariant in invariants:
            try:
                actual = self.check(invariant)
            except DeploymentToolError as e:
                logger.error(f"Check failed: {e}")
                results.append(CheckResult(invariant, passed=False, actual=getattr(e, 'actual', None), error=e))
            else:
                results.append(CheckResult(invariant, passed=True, actual=actual))
        return results
