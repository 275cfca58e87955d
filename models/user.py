from models.base_model import Base, BaseModel, SoftDeleteMixin
from sqlalchemy import Column, String
from sqlalchemy.orm import relationship


class User(SoftDeleteMixin, BaseModel, Base):
    __tablename__ = "users"
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False, default="")

    todos = relationship("Todo", back_populates="user", passive_deletes=True)
    refresh_tokens = relationship("RefreshToken", back_populates="user", passive_deletes=True)

    def __repr__(self):
        return f"<User id={self.id} email={self.email}>"
