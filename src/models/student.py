from typing import Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.db.base import Base


class Student(Base):
    __tablename__ = "students"
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    age: Mapped[Optional[int]] = mapped_column(nullable=True)

    avatar: Mapped[Optional["Avatar"]] = relationship(
        "Avatar",
        back_populates="student",
        uselist=False,
        passive_deletes=True
    )

    def __str__(self) -> str:
        return f"Student: {self.name}"

    def __repr__(self) -> str:
        return f"Student(id={self.id}, name={self.name})"
