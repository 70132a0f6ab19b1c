from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from events_api.database.db import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)

    registrations: Mapped[list["Registration"]] = relationship(back_populates="user")
