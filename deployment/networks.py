"""
Network configuration table.

Entries use the Truffle key names so the table reads like the
`truffle-config.js` it replaces. Entries are validated into immutable
NetworkProfile objects before anything touches the network.
"""

import os
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union
from web3 import Web3

from .errors import ConfigurationError
from .wallet import HDWalletProvider, read_mnemonic

logger = logging.getLogger(__name__)

WILDCARD = "*"
DEFAULT_TIMEOUT_BLOCKS = 50

BSC_TESTNET_RPC_URL = "https://data-seed-prebsc-1-s1.binance.org:8545"
BSC_TESTNET_CHAIN_ID = 97

KNOWN_KEYS = {
    'host', 'port', 'network_id', 'provider', 'confirmations',
    'timeoutBlocks', 'skipDryRun', 'pollInterval', 'blockTime',
}
REQUIRED_WHEN_PRESENT = ('host', 'port', 'network_id', 'provider')

ProviderFactory = Callable[[str], HDWalletProvider]


def _port_from_env(variable: str, default: int) -> int:
    raw = os.getenv(variable)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{variable} must be a port number, got {raw!r}", network='development', field='port'
        ) from e


def default_networks() -> Dict[str, Dict[str, Any]]:
    """Network table. RPC endpoints can be overridden from the environment."""
    testnet_rpc_url = os.getenv("TESTNET_RPC_URL", BSC_TESTNET_RPC_URL)

    return {
        'development': {
            'host': os.getenv("DEVELOPMENT_HOST", "127.0.0.1"),
            'port': _port_from_env("DEVELOPMENT_PORT", 8545),
            'network_id': WILDCARD,  # Match any network id
        },
        'testnet': {
            'provider': lambda mnemonic: HDWalletProvider(mnemonic, testnet_rpc_url),
            'network_id': BSC_TESTNET_CHAIN_ID,
            'confirmations': 10,
            'timeoutBlocks': 200,
            'skipDryRun': True,
        },
        'bscTestnet': {
            'provider': lambda mnemonic: HDWalletProvider(mnemonic, testnet_rpc_url),
            'network_id': BSC_TESTNET_CHAIN_ID,
            'confirmations': 10,
            'timeoutBlocks': 200,
            'skipDryRun': True,
        },
    }


@dataclass(frozen=True)
class NetworkProfile:
    """How to reach one deployment target"""
    name: str
    network_id: Union[int, str]
    host: Optional[str] = None
    port: Optional[int] = None
    provider: Optional[HDWalletProvider] = None
    confirmations: int = 0
    timeout_blocks: int = DEFAULT_TIMEOUT_BLOCKS
    skip_dry_run: bool = False
    poll_interval: float = 1.0
    block_time: float = 3.0

    @property
    def is_public(self) -> bool:
        return self.provider is not None

    @property
    def accepts_any_network(self) -> bool:
        return self.network_id == WILDCARD

    @property
    def rpc_url(self) -> str:
        if self.provider is not None:
            return self.provider.rpc_url
        return f"http://{self.host}:{self.port}"

    def web3_provider(self) -> Web3.HTTPProvider:
        if self.provider is not None:
            return self.provider.web3_provider()
        return Web3.HTTPProvider(self.rpc_url)

    def matches_chain(self, chain_id: int) -> bool:
        return self.accepts_any_network or self.network_id == chain_id


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_entry(name: str, entry: Dict[str, Any]) -> None:
    """
    Check one raw network entry without reading secrets or touching the network.

    Raises:
        ConfigurationError: On the first problem found
    """
    if not isinstance(entry, dict):
        raise ConfigurationError(f"Network '{name}' must be a mapping", network=name)

    unknown = sorted(set(entry) - KNOWN_KEYS)
    if unknown:
        raise ConfigurationError(
            f"Network '{name}' has unknown keys: {', '.join(unknown)}", network=name, field=unknown[0]
        )

    for key in REQUIRED_WHEN_PRESENT:
        if key in entry and (entry[key] is None or entry[key] == ""):
            raise ConfigurationError(f"Network '{name}' has an empty '{key}' entry", network=name, field=key)

    if 'network_id' not in entry:
        raise ConfigurationError(f"Network '{name}' is missing 'network_id'", network=name, field='network_id')

    network_id = entry['network_id']
    has_provider = 'provider' in entry

    if network_id == WILDCARD:
        if has_provider:
            raise ConfigurationError(
                f"Network '{name}' uses a wallet provider and must pin a numeric network_id",
                network=name, field='network_id',
            )
    elif not _is_int(network_id) or network_id <= 0:
        raise ConfigurationError(
            f"Network '{name}' network_id must be a positive integer or '{WILDCARD}', got {network_id!r}",
            network=name, field='network_id',
        )

    if has_provider:
        if not callable(entry['provider']):
            raise ConfigurationError(
                f"Network '{name}' provider must be a factory taking the mnemonic",
                network=name, field='provider',
            )
    else:
        for key in ('host', 'port'):
            if key not in entry:
                raise ConfigurationError(
                    f"Network '{name}' needs either 'provider' or both 'host' and 'port'",
                    network=name, field=key,
                )

    if 'host' in entry:
        host = entry['host']
        if not isinstance(host, str) or not host.strip():
            raise ConfigurationError(f"Network '{name}' host must be a non-empty string", network=name, field='host')
        if '://' in host or host != host.strip():
            raise ConfigurationError(
                f"Network '{name}' host must be a bare hostname without scheme or spaces, got {host!r}",
                network=name, field='host',
            )

    if 'port' in entry and (not _is_int(entry['port']) or not 0 < entry['port'] < 65536):
        raise ConfigurationError(
            f"Network '{name}' port must be an integer between 1 and 65535, got {entry['port']!r}",
            network=name, field='port',
        )

    confirmations = entry.get('confirmations', 0)
    if not _is_int(confirmations) or confirmations < 0:
        raise ConfigurationError(
            f"Network '{name}' confirmations must be a non-negative integer", network=name, field='confirmations'
        )

    timeout_blocks = entry.get('timeoutBlocks', DEFAULT_TIMEOUT_BLOCKS)
    if not _is_int(timeout_blocks) or timeout_blocks <= 0:
        raise ConfigurationError(
            f"Network '{name}' timeoutBlocks must be a positive integer", network=name, field='timeoutBlocks'
        )

    if has_provider and confirmations <= 0:
        raise ConfigurationError(
            f"Public network '{name}' needs a positive confirmations count", network=name, field='confirmations'
        )

    if 'skipDryRun' in entry and not isinstance(entry['skipDryRun'], bool):
        raise ConfigurationError(f"Network '{name}' skipDryRun must be a boolean", network=name, field='skipDryRun')

    for key in ('pollInterval', 'blockTime'):
        if key in entry and (not _is_number(entry[key]) or entry[key] <= 0):
            raise ConfigurationError(f"Network '{name}' {key} must be a positive number", network=name, field=key)


def validate_networks(entries: Dict[str, Dict[str, Any]]) -> None:
    if not entries:
        raise ConfigurationError("No networks configured")
    for name, entry in entries.items():
        validate_entry(name, entry)


def build_profile(name: str, entry: Dict[str, Any], secret_path: str) -> NetworkProfile:
    """
    Turn a validated entry into a NetworkProfile.

    The secret file is only read when the entry needs a wallet provider.
    """
    validate_entry(name, entry)

    provider = None
    if 'provider' in entry:
        mnemonic = read_mnemonic(secret_path)
        factory: ProviderFactory = entry['provider']
        provider = factory(mnemonic)
        if not isinstance(provider, HDWalletProvider):
            raise ConfigurationError(
                f"Network '{name}' provider factory returned {type(provider).__name__}",
                network=name, field='provider',
            )

    profile = NetworkProfile(
        name=name,
        network_id=entry['network_id'],
        host=entry.get('host'),
        port=entry.get('port'),
        provider=provider,
        confirmations=entry.get('confirmations', 0),
        timeout_blocks=entry.get('timeoutBlocks', DEFAULT_TIMEOUT_BLOCKS),
        skip_dry_run=entry.get('skipDryRun', False),
        poll_interval=entry.get('pollInterval', 1.0),
        block_time=entry.get('blockTime', 3.0),
    )
    logger.info(f"Loaded network profile '{name}' ({profile.rpc_url}, network_id={profile.network_id})")
    return profile
