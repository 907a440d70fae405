"""
Escrow Service Main Application

FastAPI application for crowdfunding escrow.
Port: 8260
"""

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Depends, Request, status
from fastapi.responses import JSONResponse

from core.auth_dependencies import ActorContext, require_actor
from core.config import get_settings
from core.logger import setup_service_logger

from .escrow_service import EscrowService
from .factory import create_escrow_service
from .models import (
    AccountBalanceResponse,
    CampaignCreateRequest,
    CampaignListResponse,
    CampaignResponse,
    CampaignSummary,
    DonateRequest,
    DepositRequest,
    DonationListResponse,
    DonationResponse,
    ErrorResponse,
    HealthResponse,
    LivenessResponse,
    ReadinessResponse,
    RefundRequest,
    RefundResponse,
    WithdrawResponse,
)
from .protocols import (
    CampaignNotFoundError,
    DonationNotFoundError,
    ErrorCategory,
    EscrowServiceError,
)
from .routes_registry import API_PREFIX, SERVICE_METADATA

logger = setup_service_logger("microservices.escrow_service")

# Service configuration
settings = get_settings()
SERVICE_NAME = settings.service_name
SERVICE_PORT = settings.service_port
SERVICE_VERSION = SERVICE_METADATA["version"]

# Track startup time for uptime calculation
startup_time = time.time()

# Global service instance
escrow_service: Optional[EscrowService] = None

CATEGORY_STATUS = {
    ErrorCategory.VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCategory.AUTHORIZATION: status.HTTP_403_FORBIDDEN,
    ErrorCategory.STATE: status.HTTP_409_CONFLICT,
    ErrorCategory.ARITHMETIC: status.HTTP_400_BAD_REQUEST,
    ErrorCategory.TRANSFER: status.HTTP_400_BAD_REQUEST,
    ErrorCategory.INTEGRITY: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    global escrow_service

    logger.info(f"Starting {SERVICE_NAME} on port {SERVICE_PORT}")
    escrow_service = create_escrow_service(settings)

    yield

    logger.info(f"Shutting down {SERVICE_NAME}")
    if escrow_service.event_bus:
        await escrow_service.event_bus.close()
    escrow_service = None


# Create FastAPI application
app = FastAPI(
    title="Escrow Service",
    description="Crowdfunding escrow: campaigns, donations, withdrawals and refunds",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)


# ====================
# Exception Handlers
# ====================


@app.exception_handler(CampaignNotFoundError)
@app.exception_handler(DonationNotFoundError)
async def not_found_handler(request: Request, exc: EscrowServiceError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=exc.to_dict(),
    )


@app.exception_handler(EscrowServiceError)
async def escrow_error_handler(request: Request, exc: EscrowServiceError):
    status_code = CATEGORY_STATUS.get(exc.category, status.HTTP_400_BAD_REQUEST)
    if status_code >= 500:
        logger.error(f"Escrow integrity failure on {request.url.path}: [{exc.code}] {exc}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


# ====================
# Dependencies
# ====================


def get_service() -> EscrowService:
    """Get escrow service instance"""
    if not escrow_service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return escrow_service


# ====================
# Health Endpoints
# ====================


@app.get(f"{API_PREFIX}/health")
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint"""
    dependencies = {}

    if escrow_service:
        registry_ok = await escrow_service.campaign_registry.health_check()
        ledger_ok = await escrow_service.donation_ledger.health_check()
        dependencies["campaign_registry"] = "healthy" if registry_ok else "unhealthy"
        dependencies["donation_ledger"] = "healthy" if ledger_ok else "unhealthy"
        dependencies["event_bus"] = "healthy" if escrow_service.event_bus else "not_configured"

    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        port=SERVICE_PORT,
        version=SERVICE_VERSION,
        dependencies=dependencies,
    )


@app.get("/health/ready", response_model=ReadinessResponse, tags=["Health"])
async def readiness_check():
    """Readiness check endpoint"""
    checks = {"service": escrow_service is not None}

    if escrow_service:
        checks["campaign_registry"] = await escrow_service.campaign_registry.health_check()
        checks["donation_ledger"] = await escrow_service.donation_ledger.health_check()

    return ReadinessResponse(ready=all(checks.values()), checks=checks)


@app.get("/health/live", response_model=LivenessResponse, tags=["Health"])
async def liveness_check():
    """Liveness check endpoint"""
    return LivenessResponse(
        alive=True,
        uptime_seconds=time.time() - startup_time,
    )


# ====================
# Campaign Endpoints
# ====================


@app.post(
    f"{API_PREFIX}/campaigns",
    response_model=CampaignResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    tags=["Campaigns"],
)
async def create_campaign(
    request: CampaignCreateRequest,
    service: EscrowService = Depends(get_service),
    actor: ActorContext = Depends(require_actor),
):
    """Open a campaign owned by the calling identity"""
    campaign = await service.create_campaign(
        creator=actor.actor_id,
        title=request.title,
        description=request.description,
        goal_amount=request.goal_amount,
        deadline=request.deadline,
        metadata_uri=request.metadata_uri,
        proof=actor.proof,
    )
    return CampaignResponse(campaign=campaign, message="Campaign created successfully")


@app.get(f"{API_PREFIX}/campaigns", response_model=CampaignListResponse, tags=["Campaigns"])
async def list_campaigns(
    creator: Optional[str] = Query(None, description="Only campaigns by this creator"),
    active_only: bool = Query(False),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: EscrowService = Depends(get_service),
):
    """List campaigns, newest first"""
    campaigns, total = await service.list_campaigns(
        creator=creator,
        active_only=active_only,
        limit=limit,
        offset=offset,
    )
    return CampaignListResponse(
        campaigns=campaigns,
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + len(campaigns) < total,
    )


@app.get(
    f"{API_PREFIX}/campaigns/{{campaign_id}}",
    response_model=CampaignSummary,
    tags=["Campaigns"],
)
async def get_campaign(
    campaign_id: str,
    service: EscrowService = Depends(get_service),
):
    """Campaign with phase, progress and escrow balance"""
    return await service.get_campaign_summary(campaign_id)


@app.delete(
    f"{API_PREFIX}/campaigns/{{campaign_id}}",
    response_model=CampaignResponse,
    tags=["Campaigns"],
)
async def delete_campaign(
    campaign_id: str,
    service: EscrowService = Depends(get_service),
    actor: ActorContext = Depends(require_actor),
):
    """Delete a campaign that holds no donations"""
    campaign = await service.delete_campaign(campaign_id, actor.actor_id, proof=actor.proof)
    return CampaignResponse(campaign=campaign, message="Campaign deleted")


# ====================
# Settlement Endpoints
# ====================


@app.post(
    f"{API_PREFIX}/campaigns/{{campaign_id}}/donations",
    response_model=DonationResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Donations"],
)
async def donate(
    campaign_id: str,
    request: DonateRequest,
    service: EscrowService = Depends(get_service),
    actor: ActorContext = Depends(require_actor),
):
    """Donate to a campaign from the calling identity"""
    return await service.donate(campaign_id, actor.actor_id, request.amount, proof=actor.proof)


@app.get(
    f"{API_PREFIX}/campaigns/{{campaign_id}}/donations",
    response_model=DonationListResponse,
    tags=["Donations"],
)
async def list_campaign_donations(
    campaign_id: str,
    donor: Optional[str] = Query(None),
    service: EscrowService = Depends(get_service),
):
    """Live donation records for a campaign, oldest first"""
    await service.get_campaign(campaign_id)
    donations = await service.list_donations(campaign_id=campaign_id, donor=donor)
    return DonationListResponse(donations=donations, total=len(donations))


@app.post(
    f"{API_PREFIX}/campaigns/{{campaign_id}}/withdraw",
    response_model=WithdrawResponse,
    tags=["Settlement"],
)
async def withdraw(
    campaign_id: str,
    service: EscrowService = Depends(get_service),
    actor: ActorContext = Depends(require_actor),
):
    """Release escrowed funds to the creator"""
    return await service.withdraw(campaign_id, actor.actor_id, proof=actor.proof)


@app.post(
    f"{API_PREFIX}/campaigns/{{campaign_id}}/refund",
    response_model=RefundResponse,
    tags=["Settlement"],
)
async def refund(
    campaign_id: str,
    request: Optional[RefundRequest] = None,
    service: EscrowService = Depends(get_service),
    actor: ActorContext = Depends(require_actor),
):
    """Refund one of the caller's donations"""
    request = request or RefundRequest()
    return await service.refund(
        campaign_id,
        actor.actor_id,
        donation_id=request.donation_id,
        timestamp=request.timestamp,
        proof=actor.proof,
    )


@app.get(
    f"{API_PREFIX}/donors/{{donor}}/donations",
    response_model=DonationListResponse,
    tags=["Donations"],
)
async def list_donor_donations(
    donor: str,
    service: EscrowService = Depends(get_service),
):
    """Live donation records made by one donor, oldest first"""
    donations = await service.list_donations(donor=donor)
    return DonationListResponse(donations=donations, total=len(donations))


# ====================
# Account Endpoints
# ====================


@app.post(
    f"{API_PREFIX}/accounts/deposit",
    response_model=AccountBalanceResponse,
    responses={403: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    tags=["Accounts"],
)
async def deposit(
    request: DepositRequest,
    service: EscrowService = Depends(get_service),
    actor: ActorContext = Depends(require_actor),
):
    """Credit the calling identity's own account"""
    return await service.fund_account(actor.actor_id, request.amount, proof=actor.proof)


@app.get(
    f"{API_PREFIX}/accounts/{{account_id}}",
    response_model=AccountBalanceResponse,
    tags=["Accounts"],
)
async def get_account_balance(
    account_id: str,
    service: EscrowService = Depends(get_service),
):
    """Balance of one account"""
    return await service.get_balance(account_id)


# ====================
# Main Entry Point
# ====================


def main():
    """Run the service"""
    import uvicorn

    uvicorn.run(
        "microservices.escrow_service.main:app",
        host=settings.service_host,
        port=SERVICE_PORT,
        reload=settings.debug,
        log_level="info",
    )


if __name__ == "__main__":
    main()
