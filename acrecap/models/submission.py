import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from acrecap.db.base import Base


class Submission(Base):
    __tablename__ = "submissions"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_submissions_status",
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
    user_id = Column(UUID(as_uuid=True), nullable=True, index=True)

    name = Column(Text, nullable=False)
    mobile = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    city = Column(Text, nullable=False)

    business_name = Column(Text, nullable=False)
    business_type = Column(Text, nullable=False)
    annual_turnover = Column(Text, nullable=False)
    years_in_business = Column(Text, nullable=False)

    loan_amount = Column(Text, nullable=False)
    loan_purpose = Column(Text, nullable=False)
    tenure = Column(Text, nullable=False)

    pan_number = Column(Text, nullable=True)
    gst_number = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default="pending", server_default="pending", index=True)

    def __repr__(self) -> str:
        return f"<Submission {self.id} ({self.status})>"
