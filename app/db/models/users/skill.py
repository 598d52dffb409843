# app/db/models/users/skill.py
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field
import uuid


class UserSkill(SQLModel, table=True):
    __tablename__ = "user_skills"
    __table_args__ = (UniqueConstraint("user_id", "skill"),)
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    skill: str = Field(max_length=100)
