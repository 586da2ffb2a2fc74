"""
In-memory chain standing in for a node in tests.
"""

import json
from typing import Any, Dict, Optional
from requests.exceptions import ConnectionError as RequestsConnectionError
from web3 import Web3
from web3.exceptions import ABIFunctionNotFound, ContractLogicError, TransactionNotFound

TEST_MNEMONIC = "test test test test test test test test test test test junk"
TEST_MNEMONIC_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
DEV_ACCOUNT = "0x90F8bf6A479f320ead074411a4B0e7944Ea8c9C1"

DCIP_BYTECODE = "0x60806040dc1b"
PRESALE_BYTECODE = "0x608060405e1e"
PRIVATE_SALE_BYTECODE = "0x6080604090a7"


class FakeCall:
    def __init__(self, value: Any):
        self._value = value

    def call(self):
        if isinstance(self._value, Exception):
            raise self._value
        return self._value


class FakeFunctions:
    def __init__(self, state: Dict[str, Any]):
        self._state = state

    def __getattr__(self, name: str):
        if name.startswith('_'):
            raise AttributeError(name)
        if name not in self._state:
            raise ABIFunctionNotFound(f"The function '{name}' was not found in this contract's abi.")
        value = self._state[name]
        return lambda *args: FakeCall(value)


class FakeContract:
    def __init__(self, address: str, state: Dict[str, Any]):
        self.address = address
        self.functions = FakeFunctions(state)


class FakeConstructor:
    def __init__(self, eth: "FakeEth", bytecode: str, args: tuple):
        self.eth = eth
        self.bytecode = bytecode
        self.args = args

    def estimate_gas(self, transaction: Optional[Dict[str, Any]] = None) -> int:
        self.eth.estimates += 1
        if self.eth.dry_run_revert:
            raise ContractLogicError(f"execution reverted: {self.eth.dry_run_revert}")
        return 1_500_000

    def transact(self, transaction: Dict[str, Any]) -> bytes:
        return self.eth.submit(transaction['from'], self.bytecode, self.args)

    def build_transaction(self, transaction: Dict[str, Any]) -> Dict[str, Any]:
        tx = dict(transaction)
        tx.update({'gas': 1_500_000, 'gasPrice': 10 ** 10, 'value': 0, 'data': self.bytecode})
        self.eth.built.append((tx, self.args))
        return tx


class FakeContractFactory:
    def __init__(self, eth: "FakeEth", bytecode: str):
        self.eth = eth
        self.bytecode = bytecode

    def constructor(self, *args: Any) -> FakeConstructor:
        return FakeConstructor(self.eth, self.bytecode, args)


class FakeEth:
    """
    Minimal node. Transactions are auto-mined unless mine_after_blocks is set;
    None means they are never mined. advance() moves the chain forward.
    """

    def __init__(self, chain_id: int = 1337, accounts: Optional[list] = None,
                 mine_after_blocks: Optional[int] = 0):
        self.chain_id = chain_id
        self.accounts = [DEV_ACCOUNT] if accounts is None else accounts
        self.mine_after_blocks = mine_after_blocks
        self.block_number = 100
        self.transactions: Dict[bytes, Dict[str, Any]] = {}
        self.contract_state: Dict[str, Dict[str, Any]] = {}
        self.state_by_bytecode: Dict[str, Dict[str, Any]] = {}
        self.built: list = []
        self.estimates = 0
        self.dry_run_revert: Optional[str] = None
        self.onchain_revert: Optional[str] = None
        self.unreachable = False

    def advance(self, blocks: int = 1) -> None:
        self.block_number += blocks

    def contract(self, address: Optional[str] = None, abi: Any = None, bytecode: Optional[str] = None):
        if bytecode is not None:
            return FakeContractFactory(self, bytecode)
        return FakeContract(address, self.contract_state.get(address, {}))

    def submit(self, sender: str, bytecode: str, args: tuple) -> bytes:
        if self.unreachable:
            raise RequestsConnectionError("Connection refused")

        count = len(self.transactions) + 1
        tx_hash = count.to_bytes(32, 'big')

        if self.mine_after_blocks == 0:
            self.block_number += 1
            mined_block = self.block_number
        elif self.mine_after_blocks is None:
            mined_block = None
        else:
            mined_block = self.block_number + self.mine_after_blocks

        address = None
        if not self.onchain_revert:
            address = Web3.to_checksum_address("0x" + format(0xDC1900 + count, '040x'))
            self.contract_state[address] = dict(self.state_by_bytecode.get(bytecode, {}))

        self.transactions[tx_hash] = {
            'from': sender,
            'input': bytecode,
            'args': args,
            'gas': 1_500_000,
            'value': 0,
            'mined_block': mined_block,
            'address': address,
        }
        return tx_hash

    def send_raw_transaction(self, raw: Any) -> bytes:
        tx, args = self.built[-1]
        return self.submit(tx['from'], tx['data'], args)

    def get_transaction_count(self, address: str, block_identifier: str = 'latest') -> int:
        return sum(1 for tx in self.transactions.values() if tx['from'] == address)

    def get_transaction(self, tx_hash: bytes) -> Dict[str, Any]:
        return self.transactions[tx_hash]

    def get_transaction_receipt(self, tx_hash: bytes) -> Dict[str, Any]:
        tx = self.transactions.get(tx_hash)
        if tx is None or tx['mined_block'] is None or self.block_number < tx['mined_block']:
            raise TransactionNotFound(f"Transaction with hash: '{tx_hash.hex()}' not found.")
        return {
            'status': 0 if self.onchain_revert else 1,
            'contractAddress': tx['address'],
            'blockNumber': tx['mined_block'],
            'transactionHash': tx_hash,
        }

    def call(self, transaction: Dict[str, Any], block_identifier: Any = 'latest') -> bytes:
        if self.onchain_revert:
            raise ContractLogicError(f"execution reverted: {self.onchain_revert}")
        return b''


class FakeWeb3:
    def __init__(self, eth: FakeEth):
        self.eth = eth

    def is_connected(self) -> bool:
        return not self.eth.unreachable


def write_artifact(build_dir, name: str, bytecode: str, networks: Optional[dict] = None,
                   compiler_version: str = "0.6.12+commit.27d51765.Emscripten.clang") -> None:
    build_dir.mkdir(parents=True, exist_ok=True)
    artifact = {
        'contractName': name,
        'abi': [{'type': 'constructor', 'inputs': []}],
        'bytecode': bytecode,
        'networks': networks or {},
        'compiler': {'name': 'solc', 'version': compiler_version},
    }
    (build_dir / f"{name}.json").write_text(json.dumps(artifact))
