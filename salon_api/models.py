import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_id():
    return str(uuid.uuid4())


class Profile(Base):
    """Registered platform-wide user."""

    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=generate_id)
    full_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Business(Base):
    __tablename__ = "businesses"

    id = Column(String(36), primary_key=True, default=generate_id)
    owner_id = Column(String(36), ForeignKey("profiles.id"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    city = Column(String(255), nullable=True)
    country = Column(String(2), nullable=False, default="US")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    services = relationship("Service", back_populates="business", cascade="all, delete-orphan")
    customers = relationship(
        "BusinessCustomer", back_populates="business", cascade="all, delete-orphan"
    )


class Service(Base):
    __tablename__ = "services"

    id = Column(String(36), primary_key=True, default=generate_id)
    business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    duration_minutes = Column(Integer, nullable=False, default=60)
    price = Column(Numeric(10, 2), nullable=True)
    currency = Column(String(3), nullable=False, default="USD")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    business = relationship("Business", back_populates="services")


class BusinessCustomer(Base):
    """Ad-hoc customer record scoped to a single business."""

    __tablename__ = "business_customers"

    id = Column(String(36), primary_key=True, default=generate_id)
    business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    business = relationship("Business", back_populates="customers")


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(String(36), primary_key=True, default=generate_id)
    business_id = Column(String(36), ForeignKey("businesses.id"), nullable=False, index=True)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=True, index=True)
    business_customer_id = Column(
        String(36), ForeignKey("business_customers.id"), nullable=True, index=True
    )
    staff_user_id = Column(String(36), nullable=True, index=True)
    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    end_time = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(20), nullable=False, default="pending")  # see AppointmentStatus
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    service = relationship("Service")
    user = relationship("Profile")
    business_customer = relationship("BusinessCustomer")
