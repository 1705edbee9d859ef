from datetime import datetime

from sqlalchemy import String, LargeBinary, ForeignKey, BigInteger
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.db.base import Base


class Avatar(Base):
    __tablename__ = "avatars"
    id: Mapped[int] = mapped_column(primary_key=True)
    # Не больше одной записи на студента
    student_id: Mapped[int] = mapped_column(
        ForeignKey("students.id", ondelete="CASCADE"),
        unique=True,
        index=True
    )
    file_path: Mapped[str] = mapped_column(String(1024))
    file_size: Mapped[int] = mapped_column(BigInteger)
    media_type: Mapped[str] = mapped_column(String(255))
    # Полная копия файла для быстрого превью
    data: Mapped[bytes] = mapped_column(LargeBinary)
    updated_at: Mapped[datetime] = mapped_column(
        default=datetime.now,
        onupdate=datetime.now
    )

    student: Mapped["Student"] = relationship("Student", back_populates="avatar")

    def __str__(self) -> str:
        return f"Avatar: {self.file_path}"

    def __repr__(self) -> str:
        return f"Avatar(id={self.id}, student_id={self.student_id}, file_size={self.file_size})"
