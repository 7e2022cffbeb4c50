"""Contract lifecycle endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Header, Request, status

from skillswap.api.v1._authz import authorize
from skillswap.database.db import get_db_session
from skillswap.database.models import Contract
from skillswap.schemas import (
    ContractCreateRequest,
    ContractResponse,
    ContractSignRequest,
    ContractTerminateRequest,
    ContractUpdateRequest,
    envelope,
)
from skillswap.services import dispatcher as side_effects
from skillswap.services.contract_service import ContractService

router = APIRouter(tags=["contracts"])


def _contract_payload(contract: Contract) -> dict:
    return ContractResponse.model_validate(contract).model_dump(by_alias=True)


def _fields(payload: ContractCreateRequest | ContractUpdateRequest, exclude_unset: bool = False) -> dict:
    fields = payload.model_dump(exclude_unset=exclude_unset)
    if payload.deliverables is not None and "deliverables" in fields:
        fields["deliverables"] = [item.model_dump(mode="json", by_alias=True) for item in payload.deliverables]
    return fields


@router.post("/projects/{project_id}/contract", status_code=status.HTTP_201_CREATED)
def create_contract(
    project_id: int,
    payload: ContractCreateRequest,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict:
    user = authorize(authorization, scopes=["contracts.manage"])
    with get_db_session() as session:
        contract = ContractService(session, side_effects.get_dispatcher()).create_contract(
            project_id, user.user_id, _fields(payload)
        )
        return envelope(_contract_payload(contract), "Contract created successfully")


@router.get("/projects/{project_id}/contract")
def get_contract(project_id: int, authorization: str | None = Header(default=None, alias="Authorization")) -> dict:
    user = authorize(authorization, scopes=["contracts.read"])
    with get_db_session() as session:
        contract = ContractService(session, side_effects.get_dispatcher()).get_contract(
            project_id, user.user_id, is_admin=user.is_admin
        )
        return envelope(_contract_payload(contract))


@router.put("/projects/{project_id}/contract")
def update_contract(
    project_id: int,
    payload: ContractUpdateRequest,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict:
    user = authorize(authorization, scopes=["contracts.manage"])
    with get_db_session() as session:
        contract = ContractService(session, side_effects.get_dispatcher()).update_contract(
            project_id, user.user_id, _fields(payload, exclude_unset=True)
        )
        return envelope(_contract_payload(contract), "Contract updated successfully")


@router.put("/projects/{project_id}/contract/sign")
def sign_contract(
    project_id: int,
    request: Request,
    payload: ContractSignRequest | None = None,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict:
    user = authorize(authorization, scopes=["contracts.sign"])
    ip_address = payload.ip_address if payload is not None and payload.ip_address else None
    if ip_address is None and request.client is not None:
        ip_address = request.client.host
    with get_db_session() as session:
        contract = ContractService(session, side_effects.get_dispatcher()).sign_contract(
            project_id, user.user_id, ip_address=ip_address
        )
        return envelope(_contract_payload(contract), "Contract signed successfully")


@router.put("/projects/{project_id}/contract/terminate")
def terminate_contract(
    project_id: int,
    payload: ContractTerminateRequest,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict:
    user = authorize(authorization, scopes=["contracts.manage"])
    with get_db_session() as session:
        contract = ContractService(session, side_effects.get_dispatcher()).terminate_contract(
            project_id, user.user_id, payload.termination_reason
        )
        return envelope(_contract_payload(contract), "Contract terminated successfully")
