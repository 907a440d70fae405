"""
Component Test Layer Configuration

Structure:
    tests/component/
    └── escrow/      EscrowService with in-memory registry, ledgers and clock

Usage:
    pytest tests/component -v
    pytest tests/component/escrow -v
"""
import os
import sys

# Set testing environment BEFORE any imports
os.environ["ENV"] = "testing"
os.environ["ENVIRONMENT"] = "testing"

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))
