from sqlalchemy import Column, Integer, String, DateTime, JSON, Text

from tripledger.models.booking import Base, utcnow


class EditRequest(Base):
    __tablename__ = "edit_requests"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(String, nullable=False, index=True)
    user_id = Column(String)
    user_email = Column(String, index=True)

    request_type = Column(String, nullable=False, default="other")
    description = Column(Text, nullable=False)
    proposed_changes = Column(JSON, nullable=False, default=dict)
    priority = Column(String, nullable=False, default="medium")
    status = Column(String, nullable=False, default="pending", index=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)

    def to_document(self) -> dict:
        return {
            "_id": self.id,
            "bookingId": self.booking_id,
            "userId": self.user_id,
            "userEmail": self.user_email,
            "requestType": self.request_type,
            "description": self.description,
            "proposedChanges": dict(self.proposed_changes or {}),
            "priority": self.priority,
            "status": self.status,
            "createdAt": self.created_at,
        }
