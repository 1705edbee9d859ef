from src.models.avatar import Avatar
from src.models.student import Student

__all__ = ["Avatar", "Student"]
