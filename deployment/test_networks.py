#!/usr/bin/env python3
"""
Tests for the network configuration table
"""

import pytest

from deployment.errors import ConfigurationError
from deployment.networks import (
    BSC_TESTNET_RPC_URL,
    NetworkProfile,
    WILDCARD,
    build_profile,
    default_networks,
    validate_entry,
    validate_networks,
)
from deployment.wallet import HDWalletProvider
from deployment.fakes import TEST_MNEMONIC, TEST_MNEMONIC_ADDRESS


def wallet(mnemonic):
    return HDWalletProvider(mnemonic, "https://rpc.example.org")


class TestDefaultNetworks:
    """The shipped table must validate as-is"""

    def setup_method(self):
        self.networks = default_networks()

    def test_table_validates(self):
        validate_networks(self.networks)

    def test_development_profile(self):
        """Loopback host, fixed port, wildcard network id"""
        development = self.networks['development']
        assert development['host'] == "127.0.0.1"
        assert development['port'] == 8545
        assert development['network_id'] == WILDCARD
        assert 'provider' not in development

    def test_testnet_profile(self):
        testnet = self.networks['testnet']
        assert testnet['network_id'] == 97
        assert testnet['confirmations'] == 10
        assert testnet['timeoutBlocks'] == 200
        assert testnet['skipDryRun'] is True
        assert callable(testnet['provider'])

    def test_bsc_testnet_entry_is_complete(self):
        """The bscTestnet entry has a provider and a numeric network id"""
        entry = self.networks['bscTestnet']
        for key in ('network_id', 'provider', 'confirmations', 'timeoutBlocks'):
            assert entry[key] not in (None, "")

    def test_rpc_override_from_environment(self, monkeypatch):
        monkeypatch.setenv("TESTNET_RPC_URL", "https://bsc-testnet.example.org")
        provider = default_networks()['testnet']['provider'](TEST_MNEMONIC)
        assert provider.rpc_url == "https://bsc-testnet.example.org"

    def test_default_rpc_url(self, monkeypatch):
        monkeypatch.delenv("TESTNET_RPC_URL", raising=False)
        provider = default_networks()['testnet']['provider'](TEST_MNEMONIC)
        assert provider.rpc_url == BSC_TESTNET_RPC_URL


class TestValidateEntry:
    """Malformed entries are rejected at load time"""

    @pytest.mark.parametrize("key", ['host', 'port', 'network_id', 'provider'])
    def test_empty_values_rejected(self, key):
        """The incomplete public entry shape (empty host/port/network_id/provider) fails"""
        entry = {'host': "", 'port': "", 'network_id': "", 'provider': ""}
        entry[key] = None

        with pytest.raises(ConfigurationError) as exc_info:
            validate_entry('bscTestnet', entry)

        assert exc_info.value.network == 'bscTestnet'

    def test_missing_network_id(self):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_entry('local', {'host': "127.0.0.1", 'port': 8545})
        assert exc_info.value.field == 'network_id'

    def test_missing_host_and_provider(self):
        with pytest.raises(ConfigurationError):
            validate_entry('local', {'port': 8545, 'network_id': WILDCARD})

    @pytest.mark.parametrize("port", [0, 65536, "8545", True, -1])
    def test_bad_port(self, port):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_entry('local', {'host': "127.0.0.1", 'port': port, 'network_id': WILDCARD})
        assert exc_info.value.field == 'port'

    @pytest.mark.parametrize("network_id", [0, -97, "97", 1.5])
    def test_bad_network_id(self, network_id):
        with pytest.raises(ConfigurationError):
            validate_entry('local', {'host': "127.0.0.1", 'port': 8545, 'network_id': network_id})

    def test_wildcard_not_allowed_with_provider(self):
        entry = {'provider': wallet, 'network_id': WILDCARD, 'confirmations': 2}
        with pytest.raises(ConfigurationError):
            validate_entry('public', entry)

    @pytest.mark.parametrize("confirmations", [0, -1, None, "10"])
    def test_public_network_needs_positive_confirmations(self, confirmations):
        entry = {'provider': wallet, 'network_id': 97, 'confirmations': confirmations}
        with pytest.raises(ConfigurationError):
            validate_entry('public', entry)

    def test_public_network_without_confirmations(self):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_entry('public', {'provider': wallet, 'network_id': 97})
        assert exc_info.value.field == 'confirmations'

    @pytest.mark.parametrize("timeout_blocks", [0, -5, 2.5])
    def test_bad_timeout_blocks(self, timeout_blocks):
        entry = {'provider': wallet, 'network_id': 97, 'confirmations': 2, 'timeoutBlocks': timeout_blocks}
        with pytest.raises(ConfigurationError) as exc_info:
            validate_entry('public', entry)
        assert exc_info.value.field == 'timeoutBlocks'

    def test_provider_must_be_callable(self):
        entry = {'provider': "https://rpc.example.org", 'network_id': 97, 'confirmations': 2}
        with pytest.raises(ConfigurationError) as exc_info:
            validate_entry('public', entry)
        assert exc_info.value.field == 'provider'

    def test_unknown_key(self):
        entry = {'host': "127.0.0.1", 'port': 8545, 'network_id': WILDCARD, 'gasPrice': 1}
        with pytest.raises(ConfigurationError):
            validate_entry('local', entry)

    def test_skip_dry_run_must_be_bool(self):
        entry = {'host': "127.0.0.1", 'port': 8545, 'network_id': WILDCARD, 'skipDryRun': "yes"}
        with pytest.raises(ConfigurationError):
            validate_entry('local', entry)

    @pytest.mark.parametrize("host", ["  ", "http://127.0.0.1", " localhost"])
    def test_bad_host(self, host):
        """Hosts are bare names: blank values and URLs are rejected"""
        with pytest.raises(ConfigurationError) as exc_info:
            validate_entry('local', {'host': host, 'port': 8545, 'network_id': WILDCARD})
        assert exc_info.value.field == 'host'

    def test_empty_table(self):
        with pytest.raises(ConfigurationError):
            validate_networks({})


class TestBuildProfile:
    """Profiles are built from validated entries"""

    def test_development_needs_no_secret(self, tmp_path):
        """Local profiles load even when no secret file exists"""
        profile = build_profile('development', default_networks()['development'], str(tmp_path / ".secret"))

        assert profile.host == "127.0.0.1"
        assert profile.port == 8545
        assert profile.accepts_any_network
        assert not profile.is_public
        assert profile.confirmations == 0
        assert profile.rpc_url == "http://127.0.0.1:8545"

    def test_public_profile_reads_secret(self, secret_file):
        profile = build_profile('testnet', default_networks()['testnet'], str(secret_file))

        assert profile.is_public
        assert profile.network_id == 97
        assert profile.confirmations == 10
        assert profile.timeout_blocks == 200
        assert profile.skip_dry_run is True
        assert profile.provider.address == TEST_MNEMONIC_ADDRESS

    def test_public_profile_without_secret(self, tmp_path):
        with pytest.raises(ConfigurationError):
            build_profile('testnet', default_networks()['testnet'], str(tmp_path / "missing"))

    def test_factory_must_return_wallet(self, secret_file):
        entry = {'provider': lambda mnemonic: "not a wallet", 'network_id': 97, 'confirmations': 2}
        with pytest.raises(ConfigurationError):
            build_profile('public', entry, str(secret_file))

    def test_profile_is_immutable(self):
        profile = NetworkProfile(name="development", network_id=WILDCARD, host="127.0.0.1", port=8545)
        with pytest.raises(AttributeError):
            profile.port = 7545  # type: ignore[misc]

    def test_matches_chain(self):
        wildcard = NetworkProfile(name="development", network_id=WILDCARD, host="127.0.0.1", port=8545)
        pinned = NetworkProfile(name="local", network_id=1337, host="127.0.0.1", port=8545)

        assert wildcard.matches_chain(1) and wildcard.matches_chain(97)
        assert pinned.matches_chain(1337)
        assert not pinned.matches_chain(97)
