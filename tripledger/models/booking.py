from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.orm import declarative_base
import datetime

Base = declarative_base()


def utcnow() -> datetime.datetime:
    """Naive UTC timestamp, the form every stored instant uses."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    trip_id = Column(String, unique=True, nullable=False, index=True)

    # Ownership, promoted out of the document so it can be queried
    user_id = Column(String, index=True)
    email = Column(String, index=True)
    user_email = Column(String, index=True)
    owner_email = Column(String, index=True)

    # Trip facts exactly as the upstream writer sent them (either casing)
    document = Column(JSON, nullable=False, default=dict)

    status = Column(String, index=True)
    modifications = Column(JSON, nullable=False, default=list)
    cancellation = Column(JSON)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    def owner_emails(self):
        return {e for e in (self.email, self.user_email, self.owner_email) if e}

    def to_document(self) -> dict:
        doc = dict(self.document or {})
        doc.update({
            "_id": self.id,
            "tripId": self.trip_id,
            "modifications": list(self.modifications or []),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        })
        if self.user_id:
            doc["userId"] = self.user_id
        if self.email:
            doc["email"] = self.email
        if self.user_email:
            doc["userEmail"] = self.user_email
        if self.owner_email:
            user = doc.get("user") if isinstance(doc.get("user"), dict) else {}
            doc["user"] = {**user, "email": self.owner_email}
        if self.status is not None:
            doc["status"] = self.status
        if self.cancellation:
            doc["cancellation"] = dict(self.cancellation)
        return doc
