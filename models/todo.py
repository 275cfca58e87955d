from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Integer, Index
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base, SoftDeleteMixin

STATUS_PENDING = "pending"
STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"

TODO_STATUSES = (STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_COMPLETED)


class Todo(SoftDeleteMixin, BaseModel, Base):
    __tablename__ = "todos"

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    status = Column(String(32), nullable=False, default=STATUS_PENDING)
    due_date = Column(DateTime, nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    user = relationship("User", back_populates="todos")

    __table_args__ = (
        Index("ix_todos_user_id_status", "user_id", "status"),
    )

    def __repr__(self):
        return f"<Todo id={self.id} user_id={self.user_id} status={self.status}>"
