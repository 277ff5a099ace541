"""
Account API - the signed-in customer's profile and saved addresses

Author: TM3
Date: 2025-12-09
"""
from fastapi import APIRouter, Depends, HTTPException

from sourdough.api.deps import get_customer_repository
from sourdough.core.auth import TokenUser, get_current_user
from sourdough.domain.customer import AddressCreate, AddressUpdate, CustomerProfileUpdate
from sourdough.repositories.customer_repository import CustomerRepository

router = APIRouter()


@router.get("/profile")
async def get_profile(
    user: TokenUser = Depends(get_current_user),
    repo: CustomerRepository = Depends(get_customer_repository),
):
    """Profile plus the email from the token; null profile until first saved"""
    profile = repo.get_profile(user.id)
    return {
        "status": "success",
        "email": user.email,
        "data": profile.model_dump(mode="json") if profile else None,
    }


@router.patch("/profile")
async def update_profile(
    request: CustomerProfileUpdate,
    user: TokenUser = Depends(get_current_user),
    repo: CustomerRepository = Depends(get_customer_repository),
):
    if not request.model_fields_set:
        raise HTTPException(status_code=400, detail="No fields to update")

    profile = repo.update_profile(user.id, request)
    return {"status": "success", "data": profile.model_dump(mode="json")}


@router.get("/addresses")
async def list_addresses(
    user: TokenUser = Depends(get_current_user),
    repo: CustomerRepository = Depends(get_customer_repository),
):
    addresses = repo.get_addresses(user.id)
    return {
        "status": "success",
        "count": len(addresses),
        "data": [a.model_dump(mode="json") for a in addresses],
    }


@router.post("/addresses", status_code=201)
async def add_address(
    request: AddressCreate,
    user: TokenUser = Depends(get_current_user),
    repo: CustomerRepository = Depends(get_customer_repository),
):
    address = repo.add_address(user.id, request)
    return {"status": "success", "data": address.model_dump(mode="json")}


@router.patch("/addresses/{address_id}")
async def update_address(
    address_id: str,
    request: AddressUpdate,
    user: TokenUser = Depends(get_current_user),
    repo: CustomerRepository = Depends(get_customer_repository),
):
    if not request.model_fields_set:
        raise HTTPException(status_code=400, detail="No fields to update")

    address = repo.update_address(address_id, user.id, request)
    return {"status": "success", "data": address.model_dump(mode="json")}


@router.delete("/addresses/{address_id}")
async def delete_address(
    address_id: str,
    user: TokenUser = Depends(get_current_user),
    repo: CustomerRepository = Depends(get_customer_repository),
):
    repo.delete_address(address_id, user.id)
    return {"status": "success", "message": "Address deleted"}
