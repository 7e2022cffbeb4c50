"""Contract lifecycle service: drafting, dual signature and termination."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from skillswap.core.enums import BidStatus, ContractStatus, NotificationType, ProjectStatus, RealtimeEvent
from skillswap.core.exceptions import (
    ContractStateError,
    NotFoundError,
    NotOwnerError,
    ValidationError,
)
from skillswap.database.models import Bid, Contract, Project
from skillswap.orchestration import effects
from skillswap.orchestration.contract_transitions import (
    CLIENT,
    FREELANCER,
    HASHED_FIELDS,
    assert_can_terminate,
    assert_editable,
    content_hash,
    next_version,
    plan_signature,
)
from skillswap.orchestration.effects import SideEffect
from skillswap.services.base_service import BaseService
from skillswap.services.dispatcher import SideEffectDispatcher
from skillswap.services.project_service import ProjectService

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = HASHED_FIELDS
_SIGN_ATTEMPTS = 2


class ContractService(BaseService):
    def __init__(self, db: Session | None = None, dispatcher: SideEffectDispatcher | None = None) -> None:
        super().__init__(db)
        self.projects = ProjectService(self.db, dispatcher)

    # helpers

    def _contract_for(self, project_id: int) -> Contract:
        contract = (
            self.db.query(Contract)
            .filter(Contract.project_id == project_id)
            .populate_existing()
            .first()
        )
        if contract is None:
            raise NotFoundError("Contract not found")
        return contract

    def _freelancer_user_id(self, project: Project) -> int | None:
        return project.freelancer.user_id if project.freelancer is not None else None

    def _require_owner(self, project: Project, actor_user_id: int, message: str) -> None:
        if not self.projects.is_owner(project, actor_user_id):
            raise NotOwnerError(message)

    @staticmethod
    def _validate_fields(fields: dict[str, Any]) -> None:
        for name in ("title", "description", "terms", "payment_terms"):
            if not str(fields.get(name) or "").strip():
                raise ValidationError(f"{name.replace('_', ' ').capitalize()} is required")
        if fields.get("amount") is None or float(fields["amount"]) <= 0:
            raise ValidationError("Amount must be greater than 0")
        start, end = fields.get("start_date"), fields.get("end_date")
        if not isinstance(start, datetime) or not isinstance(end, datetime):
            raise ValidationError("Start date and end date are required")
        if end <= start:
            raise ValidationError("End date must be after start date")

    @staticmethod
    def _hashed(contract: Contract) -> dict[str, Any]:
        return {name: getattr(contract, name) for name in HASHED_FIELDS}

    def _accepted_bid(self, project_id: int) -> Bid | None:
        return (
            self.db.query(Bid)
            .filter(Bid.project_id == project_id, Bid.status == BidStatus.ACCEPTED.value)
            .first()
        )

    def _contract_update(self, recipient_id: int, contract: Contract, **fields: Any) -> SideEffect:
        return effects.realtime(
            recipient_id,
            RealtimeEvent.CONTRACT_UPDATE.value,
            projectId=contract.project_id,
            contractId=contract.id,
            status=contract.status,
            **fields,
        )

    # operations

    def create_contract(self, project_id: int, actor_user_id: int, fields: dict[str, Any]) -> Contract:
        project = self.projects.get_project(project_id)
        self._require_owner(project, actor_user_id, "You are not authorized to create a contract for this project")
        if project.freelancer_id is None:
            raise ContractStateError("Project has no assigned freelancer")
        if self.db.query(Contract).filter(Contract.project_id == project_id).first() is not None:
            raise ContractStateError("Contract already exists for this project")

        accepted = self._accepted_bid(project_id)
        values = {
            "title": fields.get("title") or project.title,
            "description": fields.get("description") or project.description,
            "terms": fields.get("terms"),
            "amount": fields.get("amount") if fields.get("amount") is not None else (accepted.amount if accepted else None),
            "payment_terms": fields.get("payment_terms"),
            "start_date": fields.get("start_date"),
            "end_date": fields.get("end_date"),
            "deliverables": list(fields.get("deliverables") or []),
        }
        self._validate_fields(values)

        now = self._utcnow_naive()
        digest = content_hash(values)
        contract = Contract(
            project_id=project.id,
            client_id=project.client_id,
            freelancer_id=project.freelancer_id,
            status=ContractStatus.DRAFT.value,
            content_hash=digest,
            versions=next_version([], digest, "Initial contract", now),
            created_at=now,
            updated_at=now,
            **values,
        )
        try:
            self.db.add(contract)
            self.db.flush()
            project.contract_id = contract.id
            project.updated_at = now
            self.commit()
        except IntegrityError as exc:
            self.rollback()
            raise ContractStateError("Contract already exists for this project") from exc
        self.db.refresh(contract)

        freelancer_user_id = self._freelancer_user_id(project)
        logger.info(
            "contract.created",
            extra={"event": "contract.created", "project_id": project_id, "contract_id": contract.id},
        )
        self.projects.dispatch(
            (
                effects.notify(
                    freelancer_user_id,
                    NotificationType.CONTRACT_CREATED.value,
                    "New Contract",
                    f'A contract has been created for the project "{project.title}". Please review and sign it.',
                    sender_id=actor_user_id,
                    project_id=project.id,
                    contract_id=contract.id,
                    action_link=f"/freelancer/projects/{project.id}/contract",
                ),
                self._contract_update(freelancer_user_id, contract),
            )
        )
        return contract

    def get_contract(self, project_id: int, actor_user_id: int, is_admin: bool = False) -> Contract:
        project = self.projects.get_project(project_id)
        if not is_admin and actor_user_id not in (
            self.projects.owner_user_id(project),
            self._freelancer_user_id(project),
        ):
            raise NotOwnerError("You are not authorized to view this contract")
        return self._contract_for(project_id)

    def update_contract(self, project_id: int, actor_user_id: int, changes: dict[str, Any]) -> Contract:
        project = self.projects.get_project(project_id)
        self._require_owner(project, actor_user_id, "You are not authorized to update this contract")
        contract = self._contract_for(project_id)
        assert_editable(contract.status)

        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unsupported contract fields: {', '.join(sorted(unknown))}")

        merged = {**self._hashed(contract), **{k: v for k, v in changes.items() if v is not None}}
        self._validate_fields(merged)

        now = self._utcnow_naive()
        digest = content_hash(merged)
        for name, value in merged.items():
            setattr(contract, name, value)
        if digest != contract.content_hash:
            changed = sorted(k for k, v in changes.items() if v is not None)
            contract.versions = next_version(contract.versions, digest, f"Updated: {', '.join(changed)}", now)
            contract.content_hash = digest
        contract.updated_at = now
        self.commit()
        self.db.refresh(contract)

        logger.info(
            "contract.updated",
            extra={"event": "contract.updated", "project_id": project_id, "contract_id": contract.id},
        )
        self.projects.dispatch((self._contract_update(self._freelancer_user_id(project), contract),))
        return contract

    def sign_contract(self, project_id: int, actor_user_id: int, ip_address: str | None = None) -> Contract:
        """Record the actor's signature; signing twice keeps the first one."""
        project = self.projects.get_project(project_id)
        client_user_id = self.projects.owner_user_id(project)
        freelancer_user_id = self._freelancer_user_id(project)
        if actor_user_id == client_user_id:
            party, counterparty_id = CLIENT, freelancer_user_id
        elif freelancer_user_id is not None and actor_user_id == freelancer_user_id:
            party, counterparty_id = FREELANCER, client_user_id
        else:
            raise NotOwnerError("You are not authorized to sign this contract")

        for _ in range(_SIGN_ATTEMPTS):
            contract = self._contract_for(project_id)
            plan = plan_signature(
                contract.status,
                bool(contract.client_signed),
                bool(contract.freelancer_signed),
                party,
                self._utcnow_naive(),
                ip_address,
            )
            if plan.already_signed:
                return contract

            signed_column = getattr(Contract, f"{party}_signed")
            written = self.db.execute(
                update(Contract)
                .where(
                    Contract.id == contract.id,
                    Contract.status == plan.previous_status,
                    signed_column.is_(False),
                )
                .values(**plan.changes, updated_at=self._utcnow_naive())
                .execution_options(synchronize_session=False)
            ).rowcount
            if written == 1:
                self.commit()
                break
            # The other party signed in between; re-read and plan again.
            self.rollback()
        else:
            raise ContractStateError("Contract changed while signing, please retry")

        self.db.expire_all()
        contract = self._contract_for(project_id)
        logger.info(
            "contract.signed",
            extra={
                "event": "contract.signed",
                "project_id": project_id,
                "contract_id": contract.id,
                "actor_id": actor_user_id,
                "status": contract.status,
            },
        )

        planned: list[SideEffect] = [
            effects.notify(
                counterparty_id,
                NotificationType.CONTRACT_SIGNED.value,
                "Contract Signed",
                f'{self.projects.user_name(actor_user_id)} has signed the contract for "{project.title}"',
                sender_id=actor_user_id,
                project_id=project.id,
                contract_id=contract.id,
                action_link=f"/projects/{project.id}/contract",
            ),
            self._contract_update(counterparty_id, contract, signedBy=party),
        ]
        if plan.activated:
            planned.append(
                effects.message(
                    client_user_id,
                    freelancer_user_id,
                    f'The contract for "{project.title}" is now active. Both parties have signed.',
                    project_id=project.id,
                    is_system=True,
                )
            )
            for recipient_id in (client_user_id, freelancer_user_id):
                planned.append(
                    effects.notify(
                        recipient_id,
                        NotificationType.CONTRACT_ACTIVATED.value,
                        "Contract Active",
                        f'The contract for "{project.title}" is now active',
                        project_id=project.id,
                        contract_id=contract.id,
                        action_link=f"/projects/{project.id}/contract",
                    )
                )
        self.projects.dispatch(tuple(planned))
        return contract

    def terminate_contract(self, project_id: int, actor_user_id: int, reason: str) -> Contract:
        if not (reason or "").strip():
            raise ValidationError("Termination reason is required")
        project = self.projects.get_project(project_id)
        self._require_owner(project, actor_user_id, "You are not authorized to terminate this contract")
        contract = self._contract_for(project_id)
        assert_can_terminate(contract.status)

        now = self._utcnow_naive()
        contract.status = ContractStatus.TERMINATED.value
        contract.termination_reason = reason.strip()
        contract.termination_date = now
        contract.updated_at = now
        project.status = ProjectStatus.CANCELLED.value
        project.updated_at = now
        self.commit()
        self.db.refresh(contract)

        freelancer_user_id = self._freelancer_user_id(project)
        logger.info(
            "contract.terminated",
            extra={"event": "contract.terminated", "project_id": project_id, "contract_id": contract.id},
        )
        self.projects.dispatch(
            (
                effects.notify(
                    freelancer_user_id,
                    NotificationType.CONTRACT_TERMINATED.value,
                    "Contract Terminated",
                    f'The contract for "{project.title}" has been terminated: {contract.termination_reason}',
                    sender_id=actor_user_id,
                    project_id=project.id,
                    contract_id=contract.id,
                    action_link=f"/freelancer/projects/{project.id}",
                ),
                self._contract_update(freelancer_user_id, contract),
            )
        )
        return contract
