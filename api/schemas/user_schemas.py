from pydantic import BaseModel
from typing import Optional

class User(BaseModel):
    """Identity handed to routes: who is asking, in which role, for which courses."""
    id: int
    email: str
    full_name: Optional[str] = None
    role: str = "learner"
    allowed_course_codes: Optional[list[str]] = None  # None = unrestricted
    hashed_password: str

class MeResponse(BaseModel):
    id: int
    email: str
    full_name: Optional[str] = None
    role: str
    allowed_course_codes: Optional[list[str]] = None
