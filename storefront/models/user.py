from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    CUSTOMER = "customer"


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    google_id: Optional[str] = Field(default=None, unique=True)
    email: str = Field(index=True, unique=True)
    name: str = ""
    password: Optional[str] = None  # bcrypt hash, local accounts only
    role: Role = Field(default=Role.CUSTOMER)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    last_login: Optional[datetime] = None

    @property
    def is_federated(self) -> bool:
        return self.google_id is not None
