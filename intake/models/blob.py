from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    LargeBinary,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from intake.db.base import Base


class BlobFile(Base):
    """
    Metadata row of a stored resume.

    Content lives in ``resume_chunks``; a file row only becomes visible
    together with all of its chunks, in the same transaction.
    """

    __tablename__ = "resume_files"

    id = Column(Uuid(as_uuid=True), primary_key=True)
    bucket = Column(String(64), nullable=False, index=True)
    filename = Column(String(512), nullable=False)
    content_type = Column(String(100), nullable=False)
    length = Column(Integer, nullable=False)
    chunk_size = Column(Integer, nullable=False)
    sha256 = Column(String(64), nullable=False)
    upload_date = Column(DateTime(timezone=True), nullable=False)

    chunks = relationship(
        "BlobChunk",
        back_populates="file",
        cascade="all, delete-orphan",
        order_by="BlobChunk.n",
    )

    def __repr__(self) -> str:
        return f"<BlobFile(id={self.id}, filename={self.filename}, length={self.length})>"


class BlobChunk(Base):
    """One fixed-size slice of a stored resume (the last one may be shorter)."""

    __tablename__ = "resume_chunks"
    __table_args__ = (UniqueConstraint("file_id", "n", name="uq_resume_chunks_file_n"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    file_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("resume_files.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    n = Column(Integer, nullable=False)
    data = Column(LargeBinary, nullable=False)

    file = relationship("BlobFile", back_populates="chunks")

    def __repr__(self) -> str:
        return f"<BlobChunk(file_id={self.file_id}, n={self.n})>"
