"""
Shared fixtures built on the in-memory chain from deployment.fakes.
"""

import pytest
from unittest.mock import MagicMock

from deployment.fakes import (
    DCIP_BYTECODE,
    PRESALE_BYTECODE,
    PRIVATE_SALE_BYTECODE,
    TEST_MNEMONIC,
    TEST_MNEMONIC_ADDRESS,
    FakeEth,
    FakeWeb3,
    write_artifact,
)
from deployment.networks import NetworkProfile
from deployment.wallet import HDWalletProvider


@pytest.fixture
def fake_eth():
    eth = FakeEth()
    eth.state_by_bytecode = {
        PRESALE_BYTECODE: {'rate': 750},
        PRIVATE_SALE_BYTECODE: {'getName': "my name"},
    }
    return eth


@pytest.fixture
def fake_w3(fake_eth):
    return FakeWeb3(fake_eth)


@pytest.fixture
def secret_file(tmp_path):
    path = tmp_path / ".secret"
    path.write_text(TEST_MNEMONIC + "\n")
    return path


@pytest.fixture
def build_dir(tmp_path):
    path = tmp_path / "build" / "contracts"
    write_artifact(path, "DCIP", DCIP_BYTECODE)
    write_artifact(path, "Presale", PRESALE_BYTECODE)
    write_artifact(path, "PrivateSale", PRIVATE_SALE_BYTECODE)
    return path


@pytest.fixture
def dev_profile():
    return NetworkProfile(name="development", network_id="*", host="127.0.0.1", port=8545)


@pytest.fixture
def public_profile():
    return NetworkProfile(
        name="testnet",
        network_id=97,
        provider=HDWalletProvider(TEST_MNEMONIC, "http://rpc.invalid:8545"),
        confirmations=3,
        timeout_blocks=5,
        skip_dry_run=True,
        poll_interval=0.01,
    )


@pytest.fixture
def mock_signer():
    signer = MagicMock()
    signer.address = TEST_MNEMONIC_ADDRESS
    signer.sign_transaction.return_value.raw_transaction = b'\x01signed'
    return signer
