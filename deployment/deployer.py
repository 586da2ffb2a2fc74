"""
Contract creation with a bounded confirmation wait.

One deploy() call submits exactly one contract-creation transaction. It
either returns a DeploymentRecord for a mined, confirmed contract or
raises; nothing is recorded on failure.
"""

import time
import logging
from typing import Any, Callable, Optional, Sequence
from eth_account.signers.local import LocalAccount
from requests.exceptions import RequestException
from web3 import Web3
from web3.exceptions import ContractLogicError, TransactionNotFound
from web3.middleware import ExtraDataToPOAMiddleware

from .artifacts import ContractArtifact
from .errors import (
    ConfigurationError,
    DeploymentError,
    DeploymentTimeout,
    ProviderError,
)
from .networks import NetworkProfile
from .registry import DeploymentRecord

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def _reason(error: Exception) -> str:
    return getattr(error, 'message', None) or str(error)


def connect(profile: NetworkProfile) -> Web3:
    """
    Open a Web3 connection for a profile and check it points at the right chain.

    Raises:
        ProviderError: If the endpoint is unreachable
        ConfigurationError: If the node's chain id differs from network_id
    """
    w3 = Web3(profile.web3_provider())
    # BSC is a proof-of-authority chain
    w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)

    if not w3.is_connected():
        raise ProviderError(f"Could not connect to RPC URL: {profile.rpc_url}", endpoint=profile.rpc_url)

    try:
        chain_id = w3.eth.chain_id
    except RequestException as e:
        raise ProviderError(f"Lost connection to {profile.rpc_url}: {e}", endpoint=profile.rpc_url) from e

    if not profile.matches_chain(chain_id):
        raise ConfigurationError(
            f"Network '{profile.name}' expects network_id {profile.network_id} "
            f"but {profile.rpc_url} reports chain id {chain_id}",
            network=profile.name, field='network_id',
        )

    logger.info(f"Connected to blockchain at {profile.rpc_url} (chain id {chain_id})")
    return w3


class ContractDeployer:
    """Deploys compiled contracts to one network"""

    def __init__(
        self,
        w3: Web3,
        profile: NetworkProfile,
        signer: Optional[LocalAccount] = None,
        sleep: Callable[[float], Any] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.w3 = w3
        self.profile = profile
        self.signer = signer
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def for_profile(cls, profile: NetworkProfile) -> "ContractDeployer":
        signer = profile.provider.account if profile.provider is not None else None
        return cls(connect(profile), profile, signer=signer)

    def _sender(self) -> str:
        if self.signer is not None:
            return self.signer.address
        accounts = self.w3.eth.accounts
        if not accounts:
            raise ConfigurationError(
                f"Node for '{self.profile.name}' exposes no unlocked accounts and no wallet provider is configured",
                network=self.profile.name, field='provider',
            )
        return accounts[0]

    def _chain_id(self) -> int:
        if isinstance(self.profile.network_id, int):
            return self.profile.network_id
        return self.w3.eth.chain_id

    def _max_wait(self) -> float:
        return (self.profile.timeout_blocks + self.profile.confirmations) * self.profile.block_time

    def deploy(self, artifact: ContractArtifact, args: Sequence[Any]) -> DeploymentRecord:
        """
        Deploy a contract and wait for it to be final.

        Args:
            artifact: Compiled contract to deploy
            args: Constructor arguments, passed verbatim and in order

        Returns:
            Record of the new contract

        Raises:
            DeploymentError: On revert, in the dry run or on chain
            DeploymentTimeout: If the transaction is not mined or confirmed in time
            ProviderError: If the node becomes unreachable
        """
        name = artifact.contract_name
        if not artifact.is_deployable:
            raise ConfigurationError(f"Artifact for {name} has no bytecode; it cannot be deployed")

        contract = self.w3.eth.contract(abi=artifact.abi, bytecode=artifact.bytecode)
        constructor = contract.constructor(*args)

        try:
            sender = self._sender()
            logger.info(f"Deploying {name} from {sender} on '{self.profile.name}' with args {list(args)}")

            if not self.profile.skip_dry_run:
                self._dry_run(constructor, sender, name)

            tx_hash = self._submit(constructor, sender, name)
            logger.info(f"-> Transaction sent! Hash: {Web3.to_hex(tx_hash)}")

            deadline = self._clock() + self._max_wait()
            receipt = self._wait_for_receipt(tx_hash, name, deadline)

            if receipt['status'] != 1:
                reason = self._revert_reason(tx_hash, receipt)
                raise DeploymentError(
                    f"{name} deployment reverted: {reason or 'no revert reason returned'}",
                    contract_name=name, revert_reason=reason, transaction_hash=Web3.to_hex(tx_hash),
                )

            self._wait_for_confirmations(receipt, name, deadline)
            chain_id = self.w3.eth.chain_id
        except RequestException as e:
            raise ProviderError(
                f"Connection to {self.profile.rpc_url} failed while deploying {name}: {e}",
                endpoint=self.profile.rpc_url,
            ) from e

        address = receipt.get('contractAddress')
        if not address or address == ZERO_ADDRESS:
            raise DeploymentError(
                f"{name} deployment receipt has no contract address",
                contract_name=name, transaction_hash=Web3.to_hex(tx_hash),
            )

        logger.info(f"-> {name} deployed at {address} in block {receipt['blockNumber']}")
        return DeploymentRecord.now(
            contract_name=name,
            address=address,
            transaction_hash=Web3.to_hex(tx_hash),
            block_number=receipt['blockNumber'],
            network_id=chain_id,
        )

    def _dry_run(self, constructor: Any, sender: str, name: str) -> None:
        try:
            gas = constructor.estimate_gas({'from': sender})
        except ContractLogicError as e:
            raise DeploymentError(
                f"{name} constructor reverted during dry run: {_reason(e)}",
                contract_name=name, revert_reason=_reason(e),
            ) from e
        logger.info(f"Dry run passed, estimated gas: {gas}")

    def _submit(self, constructor: Any, sender: str, name: str) -> bytes:
        try:
            if self.signer is None:
                return constructor.transact({'from': sender})

            tx = constructor.build_transaction({
                'from': sender,
                'nonce': self.w3.eth.get_transaction_count(sender, 'pending'),
                'chainId': self._chain_id(),
            })
            signed_tx = self.signer.sign_transaction(tx)
            return self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        except ContractLogicError as e:
            raise DeploymentError(
                f"{name} constructor reverted: {_reason(e)}",
                contract_name=name, revert_reason=_reason(e),
            ) from e

    def _get_receipt(self, tx_hash: bytes) -> Optional[Any]:
        try:
            return self.w3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return None

    def _wait_for_receipt(self, tx_hash: bytes, name: str, deadline: float) -> Any:
        start_block = self.w3.eth.block_number

        while True:
            receipt = self._get_receipt(tx_hash)
            if receipt is not None:
                return receipt

            waited = self.w3.eth.block_number - start_block
            if waited >= self.profile.timeout_blocks or self._clock() >= deadline:
                raise DeploymentTimeout(
                    f"{name} deployment not mined after {waited} blocks "
                    f"(timeoutBlocks={self.profile.timeout_blocks})",
                    contract_name=name, transaction_hash=Web3.to_hex(tx_hash),
                )
            self._sleep(self.profile.poll_interval)

    def _wait_for_confirmations(self, receipt: Any, name: str, deadline: float) -> None:
        confirmations = self.profile.confirmations
        if confirmations <= 0:
            return

        target = receipt['blockNumber'] + confirmations
        logger.info(f"Waiting for {confirmations} confirmations (block {target})...")

        while self.w3.eth.block_number < target:
            if self._clock() >= deadline:
                raise DeploymentTimeout(
                    f"{name} deployment mined in block {receipt['blockNumber']} but not confirmed "
                    f"{confirmations} times in time",
                    contract_name=name, transaction_hash=Web3.to_hex(receipt['transactionHash']),
                )
            self._sleep(self.profile.poll_interval)

        logger.info(f"-> {confirmations} confirmations reached")

    def _revert_reason(self, tx_hash: bytes, receipt: Any) -> Optional[str]:
        """Replays the failed creation at its block to recover the revert reason."""
        tx = self.w3.eth.get_transaction(tx_hash)
        call = {
            'from': tx['from'],
            'data': tx['input'],
            'value': tx.get('value', 0),
            'gas': tx['gas'],
        }
        try:
            self.w3.eth.call(call, receipt['blockNumber'])
        except ContractLogicError as e:
            return _reason(e)
        return None
