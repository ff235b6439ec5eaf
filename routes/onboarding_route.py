from typing import List, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from controllers.onboarding_controller import complete_onboarding, publish_site

router = APIRouter(prefix="/api")


class AddressPayload(BaseModel):
    street: str
    city: str
    state: str
    zip: str
    country: str


class OnboardingPayload(BaseModel):
    businessName: str
    legalName: Optional[str] = None
    industry: str
    description: str
    email: str
    phone: str
    address: AddressPayload
    domain: str
    primaryColor: Optional[str] = None
    secondaryColor: Optional[str] = None
    fontFamily: Optional[str] = None
    privacyPolicyEnabled: bool = False
    termsOfServiceEnabled: bool = False
    selectedPages: Optional[List[str]] = None


@router.post("/onboarding")
async def onboarding_route(request: Request, payload: OnboardingPayload):
    """Create the site configuration and starter pages, then build the site."""
    site_fields = payload.model_dump(exclude={"selectedPages"})
    try:
        return await complete_onboarding(request, site_fields, payload.selectedPages)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/publish")
async def publish_route(request: Request):
    """Regenerate every static page from the saved configuration."""
    try:
        return await publish_site(request)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
