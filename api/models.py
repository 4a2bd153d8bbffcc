"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses. Field
names follow the JSON the web client already speaks (snake_case records,
camelCase request bodies where the client sends them).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from domain.listing import SellerListing
from domain.portfolio import PlatformStats, Portfolio
from domain.project import Project
from domain.purchase import Purchase


# ============================================================================
# Project Models
# ============================================================================

class ProjectResponse(BaseModel):
    """Single marketplace project."""
    id: str
    name: str
    location: str
    type: str
    price: Decimal
    certification: str
    description: str = ""
    impact: str = ""
    credits_available: int
    co_benefits: List[str] = Field(default_factory=list)
    status: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "1",
                "name": "Mangrove Restoration - Andhra Pradesh, India",
                "location": "Andhra Pradesh, India",
                "type": "Restoration & Protection",
                "price": "17",
                "certification": "Verified Carbon Standard (VCS)",
                "credits_available": 50000,
                "co_benefits": ["Biodiversity Protection", "Coastal Defense"],
                "status": "active",
            }
        }
    )

    @classmethod
    def from_domain(cls, project: Project) -> "ProjectResponse":
        return cls(
            id=project.project_id,
            name=project.name,
            location=project.location,
            type=project.project_type,
            price=project.price,
            certification=project.certification,
            description=project.description,
            impact=project.impact,
            credits_available=project.credits_available,
            co_benefits=list(project.co_benefits),
            status=project.status.value,
            created_at=project.created_at,
        )


class CreateProjectRequest(BaseModel):
    """New project submission. Required fields are checked by the service."""
    name: Optional[str] = None
    location: Optional[str] = None
    type: Optional[str] = None
    price: Optional[Decimal] = None
    certification: Optional[str] = None
    description: Optional[str] = None
    impact: Optional[str] = None
    credits_available: Optional[int] = None
    co_benefits: Optional[List[str]] = None


class CreateProjectResponse(BaseModel):
    success: bool = True
    project: ProjectResponse
    message: str = "Project submitted for verification"


# ============================================================================
# Purchase / Portfolio Models
# ============================================================================

class PurchaseCreditsRequest(BaseModel):
    """Request to buy credits. The buyer is taken from the bearer token."""
    project_id: Optional[str] = Field(None, alias="projectId")
    quantity: Optional[int] = None

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"projectId": "1", "quantity": 25}},
    )


class PurchaseRecord(BaseModel):
    id: str
    user_id: str
    project_id: str
    project_name: str
    credits_purchased: int
    price_per_credit: Decimal
    total_amount: Decimal
    purchase_date: datetime
    status: str
    certificate_id: str

    @classmethod
    def from_domain(cls, purchase: Purchase) -> "PurchaseRecord":
        return cls(
            id=purchase.purchase_id,
            user_id=purchase.user_id,
            project_id=purchase.project_id,
            project_name=purchase.project_name,
            credits_purchased=purchase.quantity,
            price_per_credit=purchase.price_per_credit,
            total_amount=purchase.total_amount,
            purchase_date=purchase.purchased_at,
            status=purchase.status.value,
            certificate_id=purchase.certificate_id,
        )


class PurchaseCreditsResponse(BaseModel):
    success: bool = True
    purchase: PurchaseRecord
    message: str


class PortfolioResponse(BaseModel):
    user_id: str
    total_credits: int
    total_spent: Decimal
    total_co2_offset: int
    active_projects: int
    purchases: List[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, portfolio: Portfolio) -> "PortfolioResponse":
        return cls(
            user_id=portfolio.user_id,
            total_credits=portfolio.total_credits,
            total_spent=portfolio.total_spent,
            total_co2_offset=portfolio.total_co2_offset,
            active_projects=portfolio.active_projects,
            purchases=list(portfolio.purchase_ids),
        )


class PlatformStatsResponse(BaseModel):
    total_credits_sold: int
    total_co2_offset: int
    active_projects: int
    countries_covered: int
    communities_supported: int
    ecosystems_protected: int
    last_updated: Optional[datetime] = None

    @classmethod
    def from_domain(cls, stats: PlatformStats) -> "PlatformStatsResponse":
        return cls(
            total_credits_sold=stats.total_credits_sold,
            total_co2_offset=stats.total_co2_offset,
            active_projects=stats.active_projects,
            countries_covered=stats.countries_covered,
            communities_supported=stats.communities_supported,
            ecosystems_protected=stats.ecosystems_protected,
            last_updated=stats.last_updated,
        )


# ============================================================================
# Contact Models
# ============================================================================

class ContactRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    company: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None
    inquiry_type: Optional[str] = Field(None, alias="inquiryType")

    model_config = ConfigDict(populate_by_name=True)


class SuccessResponse(BaseModel):
    success: bool = True
    message: str


# ============================================================================
# Company Registration Models
# ============================================================================

class RegistrationSubmitResponse(BaseModel):
    success: bool = True
    registration_id: str = Field(..., alias="registrationId")
    message: str = "Company registration submitted successfully"
    uploaded_documents: List[str] = Field(default_factory=list, alias="uploadedDocuments")

    model_config = ConfigDict(populate_by_name=True)


class RegistrationLookupResponse(BaseModel):
    """Stored registration (bank account number masked) if one exists."""
    exists: bool
    registration: Optional[Dict[str, Any]] = None
    message: Optional[str] = None


class DocumentUrlResponse(BaseModel):
    signed_url: str = Field(..., alias="signedUrl")

    model_config = ConfigDict(populate_by_name=True)


# ============================================================================
# Seller Listing Models
# ============================================================================

class CreateListingRequest(BaseModel):
    project_name: Optional[str] = None
    type: Optional[str] = None
    location: Optional[str] = None
    price_per_credit: Optional[Decimal] = None
    quantity: Optional[int] = None
    description: Optional[str] = None
    certification: Optional[str] = None
    co_benefits: Optional[List[str]] = None


class ListingResponse(BaseModel):
    id: str
    user_id: str
    project_name: str
    type: str
    location: str
    price_per_credit: Decimal
    quantity: int
    description: Optional[str] = None
    certification: Optional[str] = None
    co_benefits: List[str] = Field(default_factory=list)
    created_at: datetime
    status: str

    @classmethod
    def from_domain(cls, listing: SellerListing) -> "ListingResponse":
        return cls(
            id=listing.listing_id,
            user_id=listing.user_id,
            project_name=listing.project_name,
            type=listing.project_type,
            location=listing.location,
            price_per_credit=listing.price_per_credit,
            quantity=listing.quantity,
            description=listing.description,
            certification=listing.certification,
            co_benefits=list(listing.co_benefits),
            created_at=listing.created_at,
            status=listing.status.value,
        )


# ============================================================================
# Identity / Error Models
# ============================================================================

class MeResponse(BaseModel):
    user_id: str
    email: Optional[str] = None
    role: str


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str

    model_config = ConfigDict(json_schema_extra={"example": {"error": "Project not found"}})
