"""
Escrow Service Routes Registry

Service metadata and the API prefix shared by every escrow route.
"""

API_PREFIX = "/api/v1/escrow"

SERVICE_METADATA = {
    "service_name": "escrow_service",
    "version": "1.0.0",
    "tags": ['escrow', 'crowdfunding', 'v1'],
    "capabilities": ['campaign_escrow', 'donations', 'withdrawals', 'refunds', 'account_funding'],
}


__all__ = ["API_PREFIX", "SERVICE_METADATA"]
