#!/usr/bin/env python3
"""
Run the DCIP migrations against a network.

    python -m scripts.migrate --network testnet
"""

import sys
import logging
import argparse
from typing import List, Optional
from dotenv import load_dotenv

from deployment.config import load_config
from deployment.deployer import ContractDeployer
from deployment.errors import DeploymentToolError
from deployment.migrations import run_migrations
from deployment.registry import DeploymentRegistry

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def configure_logging(log_file: str = 'migrations.log') -> None:
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Deploy the DCIP contracts")
    parser.add_argument('--network', help="Network name from the network table (default: DEPLOY_NETWORK or development)")
    parser.add_argument('--only', type=int, nargs='+', metavar='N', help="Run only these migration numbers")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main function to run the migrations"""
    args = parse_args(argv)
    try:
        config = load_config(args.network)
        deployer = ContractDeployer.for_profile(config.network)
        registry = DeploymentRegistry(config.registry_path)
        records = run_migrations(config, deployer, registry, only=args.only)
    except DeploymentToolError as e:
        logger.error(f"Migration failed: {e}")
        return 1

    for record in records:
        print(f"{record.contract_name}: {record.address} (tx {record.transaction_hash})")
    return 0


if __name__ == "__main__":
    configure_logging()
    sys.exit(main())
