from pydantic import BaseModel
from uuid import UUID


class MajorRead(BaseModel):
    id: UUID
    name: str
    code: str

    class Config:
        from_attributes = True


class AcademicYearRead(BaseModel):
    id: UUID
    year: str
    is_current: bool

    class Config:
        from_attributes = True
