"""
Mnemonic backed wallet provider for public networks.

Reads the deployer's mnemonic from a local, non-versioned secret file and
derives the signing account along the standard Ethereum HD path.
"""

import os
import logging
from dataclasses import dataclass, field
from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import ValidationError
from web3 import Web3

from .errors import ConfigurationError

Account.enable_unaudited_hdwallet_features()

logger = logging.getLogger(__name__)

DEFAULT_SECRET_PATH = ".secret"
DERIVATION_PATH = "m/44'/60'/0'/0/{index}"
VALID_WORD_COUNTS = (12, 15, 18, 21, 24)


def read_mnemonic(path: str = DEFAULT_SECRET_PATH) -> str:
    """
    Load and validate the mnemonic stored in the secret file.

    Args:
        path: Location of the secret file

    Returns:
        The mnemonic with whitespace normalised to single spaces

    Raises:
        ConfigurationError: If the file is missing, unreadable, empty or
            not a valid BIP-39 phrase
    """
    if not os.path.isfile(path):
        raise ConfigurationError(
            f"Secret file '{path}' not found. Create it with the deployer mnemonic "
            "(it must not be committed).",
            field="provider",
        )

    try:
        with open(path, 'r', encoding='utf-8') as f:
            words = f.read().split()
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Secret file '{path}' could not be read: {e}", field="provider") from e

    if not words:
        raise ConfigurationError(f"Secret file '{path}' is empty.", field="provider")

    if len(words) not in VALID_WORD_COUNTS:
        raise ConfigurationError(
            f"Secret file '{path}' holds {len(words)} words; a mnemonic has "
            f"{', '.join(str(n) for n in VALID_WORD_COUNTS)} words.",
            field="provider",
        )

    mnemonic = " ".join(words)
    try:
        Account.from_mnemonic(mnemonic, account_path=DERIVATION_PATH.format(index=0))
    except (ValidationError, ValueError) as e:
        raise ConfigurationError(
            f"Secret file '{path}' does not contain a valid mnemonic: {e}",
            field="provider",
        ) from e

    logger.info(f"Loaded deployer mnemonic from {path}")
    return mnemonic


@dataclass(frozen=True)
class HDWalletProvider:
    """Signs with an HD wallet account and talks to the node over HTTP."""
    mnemonic: str = field(repr=False)
    rpc_url: str
    address_index: int = 0
    request_timeout: int = 30

    @property
    def account(self) -> LocalAccount:
        return Account.from_mnemonic(
            self.mnemonic,
            account_path=DERIVATION_PATH.format(index=self.address_index),
        )

    @property
    def address(self) -> str:
        return self.account.address

    def web3_provider(self) -> Web3.HTTPProvider:
        return Web3.HTTPProvider(self.rpc_url, request_kwargs={'timeout': self.request_timeout})
