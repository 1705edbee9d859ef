from typing import List

from pydantic import BaseModel, ConfigDict


class AvatarResponse(BaseModel):
    """Метаданные аватара, без самих байтов."""
    id: int
    student_id: int
    file_path: str
    file_size: int
    media_type: str

    model_config = ConfigDict(from_attributes=True)


class AvatarPageResponse(BaseModel):
    items: List[AvatarResponse]
    page: int
    size: int
    total: int

    model_config = ConfigDict(from_attributes=True)
