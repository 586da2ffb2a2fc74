"""
DCIP Deployment Tooling
=======================

Network configuration, migrations and post-deployment checks for the DCIP
token and presale contracts.

Structure:
- networks: Network profiles and secret loading
- wallet: Mnemonic backed signing provider
- artifacts: Compiled contract artifacts
- registry: Deployment records per network
- deployer: Contract creation and confirmation wait
- migrations: Ordered migration steps
- invariants: Post-deployment assertions
"""

__version__ = "1.0.0"
__author__ = "DCIP Team"
