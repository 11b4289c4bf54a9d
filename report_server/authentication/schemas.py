from pydantic import BaseModel
from typing import Optional

# MODERATOR LOGIN CONTRACT
class AuthRequest(BaseModel):
    password: Optional[str] = None

# LOGIN RESPONSE CONTRACT
class AuthResponse(BaseModel):
    success: bool = True
