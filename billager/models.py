# billager/models.py
"""SQLAlchemy ORM models for the table-backed store.

`Car` mirrors the listing record plus the owning user; `User` backs sign-up
and sign-in.
"""
from sqlalchemy import Column, Integer, Text, JSON, TIMESTAMP, ForeignKey, Index
from .db import Base

class User(Base):
    __tablename__ = "users"
    id = Column(Text, primary_key=True)
    username = Column(Text, nullable=False)
    email = Column(Text, nullable=False, unique=True, index=True)
    password_hash = Column(Text, nullable=False)
    password_salt = Column(Text, nullable=False)
    phone = Column(Text, nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False)

class Car(Base):
    __tablename__ = "cars"
    id = Column(Text, primary_key=True)
    user_id = Column(Text, ForeignKey("users.id"), index=True)
    brand = Column(Text, nullable=False)
    model = Column(Text, nullable=False)
    year = Column(Integer, nullable=False)
    km = Column(Integer, nullable=False)
    price = Column(Integer, nullable=False)
    description = Column(Text)
    # ordered list of image URIs
    images = Column(JSON, nullable=False, default=list)
    owner_name = Column(Text, nullable=False)
    owner_phone = Column(Text, nullable=False)
    owner_email = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False)

Index("idx_cars_price", Car.price)
Index("idx_cars_year", Car.year)

class UserSession(Base):
    __tablename__ = "user_sessions"
    token = Column(Text, primary_key=True)
    user_id = Column(Text, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False)
