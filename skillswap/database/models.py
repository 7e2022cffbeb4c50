from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship

from .db import Base


def utcnow() -> datetime:
    """Return UTC now as naive datetime for DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


_ACCEPTED_ONLY = text("status = 'Accepted'")
_ACTIVE_ONLY = text("status IN ('Pending', 'Countered', 'Accepted')")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    role = Column(String, nullable=False, default="freelancer")
    phone = Column(String)
    created_at = Column(DateTime, default=utcnow)


class ClientProfile(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    company_name = Column(String)
    created_at = Column(DateTime, default=utcnow)

    user = relationship("User")


class FreelancerProfile(Base):
    __tablename__ = "freelancers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    title = Column(String)
    hourly_rate = Column(Float)
    created_at = Column(DateTime, default=utcnow)

    user = relationship("User")


class Project(Base):
    __tablename__ = "projects"
    __table_args__ = (
        Index("idx_projects_status", "status"),
        Index("idx_projects_client", "client_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    freelancer_id = Column(Integer, ForeignKey("freelancers.id"))
    contract_id = Column(Integer, ForeignKey("contracts.id", use_alter=True, name="fk_projects_contract_id"))
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String)
    budget = Column(Float, nullable=False)
    deadline = Column(DateTime)
    status = Column(String, nullable=False, default="Open")
    start_date = Column(DateTime)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    client = relationship("ClientProfile")
    freelancer = relationship("FreelancerProfile")
    bids = relationship(
        "Bid",
        back_populates="project",
        order_by="Bid.id",
        lazy="selectin",
    )


class Bid(Base):
    __tablename__ = "bids"
    __table_args__ = (
        Index("idx_bids_project", "project_id"),
        Index("idx_bids_freelancer", "freelancer_id"),
        Index("idx_bids_status", "status"),
        # A project can have one winner, ever.
        Index(
            "uq_bids_project_accepted",
            "project_id",
            unique=True,
            sqlite_where=_ACCEPTED_ONLY,
            postgresql_where=_ACCEPTED_ONLY,
        ),
        # One live bid per freelancer per project.
        Index(
            "uq_bids_project_freelancer_active",
            "project_id",
            "freelancer_id",
            unique=True,
            sqlite_where=_ACTIVE_ONLY,
            postgresql_where=_ACTIVE_ONLY,
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    freelancer_id = Column(Integer, ForeignKey("freelancers.id"), nullable=False)
    amount = Column(Float, nullable=False)
    delivery_time = Column(Integer, nullable=False)
    proposal = Column(Text, nullable=False)
    status = Column(String, nullable=False, default="Pending")
    counter_amount = Column(Float)
    counter_delivery_time = Column(Integer)
    counter_message = Column(Text)
    counter_date = Column(DateTime)
    rejection_reason = Column(Text)
    milestones = Column(JSON, default=list)
    notes = Column(Text)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    project = relationship("Project", back_populates="bids")
    freelancer = relationship("FreelancerProfile", lazy="joined")

    @property
    def has_counter_offer(self) -> bool:
        return self.counter_amount is not None


class Contract(Base):
    __tablename__ = "contracts"
    __table_args__ = (
        Index("idx_contracts_status", "status"),
        UniqueConstraint("project_id", name="uq_contracts_project_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    freelancer_id = Column(Integer, ForeignKey("freelancers.id"), nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    terms = Column(Text, nullable=False)
    amount = Column(Float, nullable=False)
    payment_terms = Column(Text, nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    deliverables = Column(JSON, default=list)
    client_signed = Column(Boolean, nullable=False, default=False)
    client_signed_at = Column(DateTime)
    client_signed_ip = Column(String)
    freelancer_signed = Column(Boolean, nullable=False, default=False)
    freelancer_signed_at = Column(DateTime)
    freelancer_signed_ip = Column(String)
    status = Column(String, nullable=False, default="Draft")
    termination_reason = Column(Text)
    termination_date = Column(DateTime)
    content_hash = Column(String)
    versions = Column(JSON, default=list)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    project = relationship("Project", foreign_keys=[project_id])


class Message(Base):
    __tablename__ = "messages"
    __table_args__ = (
        Index("idx_messages_pair", "sender_id", "receiver_id"),
        Index("idx_messages_project", "project_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    receiver_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    project_id = Column(Integer, ForeignKey("projects.id"))
    content = Column(Text, nullable=False)
    is_system = Column(Boolean, nullable=False, default=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        Index("idx_notifications_recipient_read", "recipient_id", "read"),
    )

    id = Column(Integer, primary_key=True, index=True)
    recipient_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    sender_id = Column(Integer, ForeignKey("users.id"))
    type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    project_id = Column(Integer, ForeignKey("projects.id"))
    bid_id = Column(Integer, ForeignKey("bids.id"))
    contract_id = Column(Integer, ForeignKey("contracts.id"))
    action_link = Column(String)
    read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime)
    email_delivered = Column(Boolean, nullable=False, default=False)
    sms_delivered = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)


class NotificationPreference(Base):
    __tablename__ = "notification_preferences"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    in_app_enabled = Column(Boolean, nullable=False, default=True)
    email_enabled = Column(Boolean, nullable=False, default=True)
    sms_enabled = Column(Boolean, nullable=False, default=False)
    disabled_in_app_types = Column(JSON, default=list)
    disabled_email_types = Column(JSON, default=list)
    enabled_sms_types = Column(JSON)
    updated_at = Column(DateTime, default=utcnow)
