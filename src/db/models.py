"""
SQLAlchemy database models for Citizenly.

ORM models that map to database tables with proper indexing,
constraints, and relationships.

Responsibility: Define database schema and ORM mappings
"""

import datetime as dt
import uuid
from datetime import date, datetime
from typing import Optional, List, Dict, Any
import sqlalchemy as sa
from sqlalchemy import (
    String, Integer, Date, DateTime, Boolean, Text, Float,
    ForeignKey, Index, UniqueConstraint, CheckConstraint,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models"""
    pass


def _uuid_pk() -> Mapped[uuid.UUID]:
    return mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)


def _text_array() -> Mapped[List[str]]:
    return mapped_column(
        ARRAY(Text),
        nullable=False,
        default=list,
        server_default=sa.text("'{}'::text[]")
    )


class _Timestamps:
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        server_default=sa.func.now()
    )


# MARK: - Legislative data (LegiScan)

class LegislativeSessionModel(_Timestamps, Base):
    """A state legislative session."""

    __tablename__ = "legislative_sessions"

    session_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    state_id: Mapped[int] = mapped_column(Integer, nullable=False)
    state: Mapped[str] = mapped_column(String(2), nullable=False, default="NV")
    year_start: Mapped[int] = mapped_column(Integer, nullable=False)
    year_end: Mapped[int] = mapped_column(Integer, nullable=False)
    session_name: Mapped[str] = mapped_column(String(255), nullable=False)
    session_title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    special: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    dataset_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    bills: Mapped[List["BillModel"]] = relationship(back_populates="session")

    __table_args__ = (
        Index("idx_sessions_state_active", "state", "active"),
    )

    def __repr__(self) -> str:
        return f"<LegislativeSessionModel(session_id={self.session_id}, name='{self.session_name}')>"


class BillModel(_Timestamps, Base):
    """
    A bill as last seen on LegiScan.

    ``change_hash`` is LegiScan's opaque dirty marker; sync skips bills
    whose stored hash matches the masterlist.
    """

    __tablename__ = "bills"

    bill_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    session_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("legislative_sessions.session_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    bill_number: Mapped[str] = mapped_column(String(20), nullable=False)
    bill_type: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    status_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    last_action: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    last_action_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True, index=True)
    chamber: Mapped[Optional[str]] = mapped_column(String(1), nullable=True)
    current_committee_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    subjects: Mapped[List[str]] = _text_array()
    change_hash: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    legiscan_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    state_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    session: Mapped[LegislativeSessionModel] = relationship(back_populates="bills")
    sponsors: Mapped[List["BillSponsorModel"]] = relationship(
        back_populates="bill",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_bills_session_number", "session_id", "bill_number"),
        Index("idx_bills_subjects", "subjects", postgresql_using="gin"),
    )

    def __repr__(self) -> str:
        return f"<BillModel(bill_id={self.bill_id}, number='{self.bill_number}', status={self.status})>"


class LegislatorModel(_Timestamps, Base):
    """A state legislator (LegiScan person)."""

    __tablename__ = "legislators"

    people_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    party: Mapped[Optional[str]] = mapped_column(String(5), nullable=True)
    role: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    district: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    chamber: Mapped[str] = mapped_column(String(1), nullable=False)
    state: Mapped[str] = mapped_column(String(2), nullable=False, default="NV")
    level: Mapped[str] = mapped_column(String(20), nullable=False, default="state")
    votesmart_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    ballotpedia: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    person_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<LegislatorModel(people_id={self.people_id}, name='{self.full_name}')>"


class BillSponsorModel(Base):
    """Sponsor link between a bill and a legislator."""

    __tablename__ = "bill_sponsors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    bill_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("bills.bill_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    people_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("legislators.people_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    sponsor_type: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sponsor_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    bill: Mapped[BillModel] = relationship(back_populates="sponsors")
    legislator: Mapped[LegislatorModel] = relationship()

    __table_args__ = (
        UniqueConstraint("bill_id", "people_id", name="uq_bill_sponsor"),
    )


class RollCallModel(_Timestamps, Base):
    """A recorded floor or committee vote on a bill."""

    __tablename__ = "roll_calls"

    roll_call_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    bill_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("bills.bill_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    date: Mapped[Optional[dt.date]] = mapped_column(Date, nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    chamber: Mapped[Optional[str]] = mapped_column(String(1), nullable=True)
    yea_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    nay_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    not_voting_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    absent_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    passed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    legiscan_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    state_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    votes: Mapped[List["IndividualVoteModel"]] = relationship(
        back_populates="roll_call",
        cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<RollCallModel(roll_call_id={self.roll_call_id}, bill_id={self.bill_id}, passed={self.passed})>"


class IndividualVoteModel(Base):
    """One legislator's vote within a roll call."""

    __tablename__ = "individual_votes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    roll_call_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("roll_calls.roll_call_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    people_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    vote_type: Mapped[int] = mapped_column(Integer, nullable=False)
    vote_text: Mapped[str] = mapped_column(String(20), nullable=False)

    roll_call: Mapped[RollCallModel] = relationship(back_populates="votes")

    __table_args__ = (
        UniqueConstraint("roll_call_id", "people_id", name="uq_individual_vote"),
    )


class FeedItemModel(Base):
    """
    Denormalized legislative event for the user activity feed.

    ``dedupe_key`` together with type/bill/roll call makes inserts
    idempotent, so reprocessing the same transition adds no row.
    """

    __tablename__ = "feed_items"

    id: Mapped[uuid.UUID] = _uuid_pk()
    type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    bill_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("bills.bill_id", ondelete="CASCADE"),
        nullable=True,
        index=True
    )
    roll_call_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("roll_calls.roll_call_id", ondelete="CASCADE"),
        nullable=True
    )
    people_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("legislators.people_id", ondelete="SET NULL"),
        nullable=True
    )
    action_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    subjects: Mapped[List[str]] = _text_array()
    districts: Mapped[List[str]] = _text_array()
    metadata_: Mapped[Dict[str, Any]] = mapped_column(
        "metadata",
        JSONB,
        nullable=False,
        default=dict
    )
    dedupe_key: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        server_default=sa.func.now()
    )

    __table_args__ = (
        UniqueConstraint(
            "type", "bill_id", "roll_call_id", "dedupe_key",
            name="uq_feed_item_event",
            postgresql_nulls_not_distinct=True
        ),
        Index("idx_feed_items_districts", "districts", postgresql_using="gin"),
        Index("idx_feed_items_subjects", "subjects", postgresql_using="gin"),
        Index("idx_feed_items_action_created", "action_date", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<FeedItemModel(type='{self.type}', bill_id={self.bill_id}, title='{self.title[:40]}')>"


# MARK: - Users and civic engagement

class UserModel(_Timestamps, Base):
    """Citizen, politician or admin account."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = _uuid_pk()
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="citizen")
    verification_status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    interests: Mapped[List[str]] = _text_array()
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    addresses: Mapped[List["AddressModel"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("role IN ('citizen', 'politician', 'admin')", name="ck_users_role"),
        CheckConstraint(
            "verification_status IN ('pending', 'verified', 'rejected')",
            name="ck_users_verification_status"
        ),
    )

    def __repr__(self) -> str:
        return f"<UserModel(id={self.id}, email='{self.email}', role='{self.role}')>"


class AddressModel(_Timestamps, Base):
    """User address with the districts used for feed and poll targeting."""

    __tablename__ = "addresses"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    street_address: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    state: Mapped[str] = mapped_column(String(2), nullable=False)
    zip_code: Mapped[str] = mapped_column(String(10), nullable=False)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    congressional_district: Mapped[Optional[str]] = mapped_column(String(20), nullable=True, index=True)
    state_senate_district: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    state_house_district: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    county: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    user: Mapped[UserModel] = relationship(back_populates="addresses")


class PoliticianModel(_Timestamps, Base):
    """Office-holder profile attached to a politician user."""

    __tablename__ = "politicians"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True
    )
    office_level: Mapped[str] = mapped_column(String(20), nullable=False)
    office_title: Mapped[str] = mapped_column(String(255), nullable=False)
    district: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    state: Mapped[str] = mapped_column(String(2), nullable=False, default="NV")
    congressional_district: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    state_code: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)
    party: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    user: Mapped[UserModel] = relationship()


class UserLegislativeInterestModel(_Timestamps, Base):
    """Subjects, extra districts and feed item types a user follows."""

    __tablename__ = "user_legislative_interests"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True
    )
    subjects: Mapped[List[str]] = _text_array()
    follow_districts: Mapped[List[str]] = _text_array()
    notification_types: Mapped[List[str]] = mapped_column(
        ARRAY(Text),
        nullable=False,
        default=lambda: ["bill_introduced", "vote_result"],
        server_default=sa.text("ARRAY['bill_introduced','vote_result']::text[]")
    )


class PollModel(_Timestamps, Base):
    """A constituent poll published by a verified politician."""

    __tablename__ = "polls"

    id: Mapped[uuid.UUID] = _uuid_pk()
    politician_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        ForeignKey("politicians.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    poll_type: Mapped[str] = mapped_column(String(20), nullable=False)
    options: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONB, nullable=True)
    target_audience: Mapped[Dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    congressional_district: Mapped[Optional[str]] = mapped_column(String(20), nullable=True, index=True)
    state_code: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft", index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    starts_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    ends_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    max_responses: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    requires_verification: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    allows_anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    show_results_before_vote: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    show_results_after_vote: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    total_responses: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    politician: Mapped[PoliticianModel] = relationship()

    __table_args__ = (
        CheckConstraint(
            "poll_type IN ('yes_no', 'multiple_choice', 'approval_rating', 'ranked_choice')",
            name="ck_polls_type"
        ),
        CheckConstraint(
            "status IN ('draft', 'active', 'closed', 'archived')",
            name="ck_polls_status"
        ),
    )


class PollResponseModel(Base):
    """A single user's answer to a poll."""

    __tablename__ = "poll_responses"

    id: Mapped[uuid.UUID] = _uuid_pk()
    poll_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        ForeignKey("polls.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )
    response_data: Mapped[Dict[str, Any]] = mapped_column(JSONB, nullable=False)
    demographic_data: Mapped[Dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    response_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    verification_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    response_time_seconds: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        server_default=sa.func.now()
    )

    __table_args__ = (
        UniqueConstraint("poll_id", "user_id", name="uq_poll_response_user"),
    )


class NotificationModel(Base):
    """A notification queued for one user across one or more channels."""

    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    data: Mapped[Dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    channels: Mapped[List[str]] = _text_array()
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    email_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    sms_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    push_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    scheduled_for: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        server_default=sa.func.now()
    )

    __table_args__ = (
        Index("idx_notifications_pending", "is_sent", "scheduled_for"),
        Index("idx_notifications_user_read", "user_id", "is_read"),
    )


class NotificationPreferenceModel(_Timestamps, Base):
    """Per-user channel toggles, type toggles and quiet hours."""

    __tablename__ = "notification_preferences"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True
    )
    email_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    sms_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    push_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    in_app_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    new_poll_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    poll_result_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    poll_reminder_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    poll_ending_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    system_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    digest_frequency: Mapped[str] = mapped_column(String(20), nullable=False, default="immediate")
    quiet_hours_start: Mapped[str] = mapped_column(String(5), nullable=False, default="22:00")
    quiet_hours_end: Mapped[str] = mapped_column(String(5), nullable=False, default="08:00")
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="America/Los_Angeles")


class AuditLogModel(Base):
    """Append-only record of user actions on polls and accounts."""

    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    resource_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    resource_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    details: Mapped[Dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        server_default=sa.func.now()
    )
