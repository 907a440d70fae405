"""
API Test Layer Configuration

Structure:
    tests/api/
    └── escrow/      FastAPI TestClient against microservices.escrow_service.main

Usage:
    pytest tests/api -v
"""
import os
import sys

# Set testing environment BEFORE any imports
os.environ["ENV"] = "testing"
os.environ["ENVIRONMENT"] = "testing"

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))
