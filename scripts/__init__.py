"""
Deployment and Verification Scripts
===================================

Operator entry points for deploying and checking the DCIP contracts.

Structure:
- migrate: Run the migrations against a network
- verify_deployment: Check post-deployment invariants
"""

__version__ = "1.0.0"
__author__ = "DCIP Team"
