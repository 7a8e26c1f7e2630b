from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func

from socialgraph.db.session import Base

class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    display_name = Column(String, nullable=True)
    location_city = Column(String, nullable=True, index=True)  # Drives the geo feed source
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
