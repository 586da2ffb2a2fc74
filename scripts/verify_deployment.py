#!/usr/bin/env python3
"""
Check the post-deployment invariants on a network.

    python -m scripts.verify_deployment --network testnet
"""

import sys
import logging
import argparse
from typing import List, Optional
from dotenv import load_dotenv

from deployment.config import load_config
from deployment.deployer import connect
from deployment.errors import DeploymentToolError
from deployment.invariants import DeploymentReader
from deployment.registry import DeploymentRegistry
from scripts.migrate import configure_logging

load_dotenv()

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Check deployed DCIP contracts")
    parser.add_argument('--network', help="Network name from the network table (default: DEPLOY_NETWORK or development)")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        config = load_config(args.network)
        w3 = connect(config.network)
        reader = DeploymentReader(w3, config.network.name, DeploymentRegistry(config.registry_path), config.build_dir)
        results = reader.check_all()
    except DeploymentToolError as e:
        logger.error(f"Verification aborted: {e}")
        return 1

    for result in results:
        status = "PASS" if result.passed else "FAIL"
        detail = result.actual if result.passed else result.error
        print(f"[{status}] {result.invariant.contract_name}.{result.invariant.field}: {detail}")

    failed = [result for result in results if not result.passed]
    logger.info(f"Checks finished - Passed: {len(results) - len(failed)}, Failed: {len(failed)}")
    return 1 if failed else 0


if __name__ == "__main__":
    configure_logging()
    sys.exit(main())
