# This project was developed with assistance from AI tools.
"""
FBO Authorization Portal -- domain models

Faith-based organization authorization models covering applicants,
applications, supporting documents, review comments, notifications,
downstream dispatches and the audit trail.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base
from .enums import (
    ApplicationStatus,
    DispatchKind,
    DispatchStatus,
    DocumentType,
    NotificationType,
)


class Province(Base):
    """Top-level administrative region."""

    __tablename__ = "provinces"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)

    districts = relationship("District", back_populates="province", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Province(id={self.id}, name='{self.name}')>"


class District(Base):
    """District within a province. Applications are filed against a district."""

    __tablename__ = "districts"
    __table_args__ = (
        UniqueConstraint("province_id", "name", name="uq_district_province_name"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    province_id = Column(
        Integer, ForeignKey("provinces.id", ondelete="CASCADE"), nullable=False, index=True,
    )

    province = relationship("Province", back_populates="districts")

    def __repr__(self):
        return f"<District(id={self.id}, name='{self.name}')>"


class Applicant(Base):
    """Applicant profile linked to Keycloak identity."""

    __tablename__ = "applicants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    keycloak_user_id = Column(String(255), unique=True, nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    applications = relationship("Application", back_populates="applicant")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self):
        return f"<Applicant(id={self.id}, name='{self.first_name} {self.last_name}')>"


class Application(Base):
    """FBO authorization application."""

    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    applicant_id = Column(
        Integer, ForeignKey("applicants.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    district_id = Column(
        Integer, ForeignKey("districts.id", ondelete="RESTRICT"), nullable=False, index=True,
    )
    organization_name = Column(String(200), nullable=False)
    acronym = Column(String(20), nullable=True)
    organization_email = Column(String(255), nullable=False)
    organization_phone = Column(String(20), nullable=False)
    address = Column(Text, nullable=False)
    cluster_of_intervention = Column(String(200), nullable=False)
    source_of_fund = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(
        Enum(ApplicationStatus, name="application_status", native_enum=False),
        nullable=False,
        default=ApplicationStatus.PENDING,
        index=True,
    )
    risk_score = Column(Float, nullable=False, default=0.0)
    certificate_number = Column(String(50), unique=True, nullable=True)
    certificate_issued_at = Column(DateTime(timezone=True), nullable=True)
    submitted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    last_modified = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    status_changed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    applicant = relationship("Applicant", back_populates="applications")
    district = relationship("District")
    documents = relationship(
        "Document", back_populates="application", cascade="all, delete-orphan",
    )
    comments = relationship(
        "ApplicationComment", back_populates="application", cascade="all, delete-orphan",
        order_by="ApplicationComment.created_at",
    )

    def __repr__(self):
        return f"<Application(id={self.id}, status='{self.status}')>"


class Document(Base):
    """Supporting document uploaded for an application. One per type."""

    __tablename__ = "documents"
    __table_args__ = (
        UniqueConstraint("application_id", "document_type", name="uq_document_app_type"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    document_type = Column(
        Enum(DocumentType, name="document_type", native_enum=False),
        nullable=False,
    )
    file_path = Column(String(500), nullable=True)
    original_filename = Column(String(255), nullable=True)
    content_type = Column(String(100), nullable=True)
    file_size = Column(Integer, nullable=True)
    # None = not yet validated
    is_valid = Column(Boolean, nullable=True)
    validation_comments = Column(Text, nullable=True)
    validated_by = Column(String(255), nullable=True)
    validated_at = Column(DateTime(timezone=True), nullable=True)
    uploaded_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    application = relationship("Application", back_populates="documents")

    def __repr__(self):
        return f"<Document(id={self.id}, type='{self.document_type}')>"


class ApplicationComment(Base):
    """Immutable review comment. Status transitions record from/to status."""

    __tablename__ = "application_comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    author_id = Column(String(255), nullable=False)
    author_name = Column(String(255), nullable=False)
    author_role = Column(String(50), nullable=False)
    content = Column(Text, nullable=False)
    from_status = Column(
        Enum(ApplicationStatus, name="application_status", native_enum=False),
        nullable=True,
    )
    to_status = Column(
        Enum(ApplicationStatus, name="application_status", native_enum=False),
        nullable=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    application = relationship("Application", back_populates="comments")

    def __repr__(self):
        return f"<ApplicationComment(id={self.id}, app_id={self.application_id})>"


class Notification(Base):
    """In-app notification addressed to a user or to every holder of a role."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    recipient_id = Column(String(255), nullable=True, index=True)
    recipient_role = Column(String(50), nullable=True, index=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=True, index=True,
    )
    notification_type = Column(
        Enum(NotificationType, name="notification_type", native_enum=False),
        nullable=False,
    )
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    reads = relationship("NotificationRead", back_populates="notification", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Notification(id={self.id}, type='{self.notification_type}')>"


class NotificationRead(Base):
    """One user having read one notification. Role notifications get a row per reader."""

    __tablename__ = "notification_reads"
    __table_args__ = (
        UniqueConstraint("notification_id", "user_id", name="uq_notification_read_user"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    notification_id = Column(
        Integer, ForeignKey("notifications.id", ondelete="CASCADE"), nullable=False,
    )
    user_id = Column(String(255), nullable=False, index=True)
    read_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    notification = relationship("Notification", back_populates="reads")

    def __repr__(self):
        return f"<NotificationRead(notification_id={self.notification_id}, user_id='{self.user_id}')>"


class Dispatch(Base):
    """Outbox row for a downstream effect that has not been delivered yet."""

    __tablename__ = "dispatches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    kind = Column(
        Enum(DispatchKind, name="dispatch_kind", native_enum=False),
        nullable=False,
    )
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    payload = Column(JSON, nullable=True)
    status = Column(
        Enum(DispatchStatus, name="dispatch_status", native_enum=False),
        nullable=False,
        default=DispatchStatus.PENDING,
        index=True,
    )
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Dispatch(id={self.id}, kind='{self.kind}', status='{self.status}')>"


class AuditEvent(Base):
    """Append-only audit trail. INSERT + SELECT only -- no UPDATE or DELETE."""

    __tablename__ = "audit_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    prev_hash = Column(String(64), nullable=True)
    user_id = Column(String(255), nullable=True)
    user_role = Column(String(50), nullable=True)
    event_type = Column(String(100), nullable=False, index=True)
    application_id = Column(Integer, nullable=True, index=True)
    event_data = Column(JSON, nullable=True)

    def __repr__(self):
        return f"<AuditEvent(id={self.id}, type='{self.event_type}')>"
