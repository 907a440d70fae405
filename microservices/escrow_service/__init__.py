"""
Escrow Service

Crowdfunding escrow microservice providing:
- Time-boxed fundraising campaigns with a funding goal
- Donations held in escrow per campaign
- Creator withdrawal when the goal is met by the deadline
- Per-donation refunds when it is not

Port: 8260
"""

__version__ = "1.0.0"
__service__ = "escrow_service"
