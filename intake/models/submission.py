from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, Uuid

from intake.db.base import Base


class Submission(Base):
    """
    Contact form or internship application.

    All submission shapes share this table; ``kind`` tells them apart and
    decides which columns are required (see ``intake.schemas.submission``).
    ``id`` grows with insertion order and breaks ``created_at`` ties.
    """

    __tablename__ = "submissions"
    __table_args__ = (Index("ix_submissions_kind_created_at", "kind", "created_at"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    kind = Column(String(20), nullable=False)

    name = Column(String(255), nullable=False)
    last_name = Column(String(255))
    mobile = Column(String(50))
    email = Column(String(255), nullable=False)
    subject = Column(String(255))
    message = Column(Text)

    resume_file_id = Column(
        Uuid(as_uuid=True), ForeignKey("resume_files.id"), nullable=True
    )
    resume_file_name = Column(String(512))

    created_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<Submission(id={self.id}, kind={self.kind})>"
