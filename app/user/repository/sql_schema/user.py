from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime
from pkg.db_util.sql_alchemy.declarative_base import Base


class UserModel(Base):
    __tablename__ = "users"

    # Same id as the identity provider's auth.users row
    id = Column(String, primary_key=True)
    email = Column(String, unique=True, nullable=False)
    language_preference = Column(String, nullable=False, default="tr")
    is_premium = Column(Boolean, nullable=False, default=False)
    premium_expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)
