"""Restaurant and staff models"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from orderdesk.database import Base


class Restaurant(Base):
    """Restaurant whose orders are coordinated"""
    __tablename__ = "restaurants"
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    timezone = Column(String(50), default="America/Toronto", nullable=False)
    
    # Default role modes for sessions that do not pick one: team, individual,
    # chef (kitchen) / coordinator (delivery)
    kitchen_mode = Column(String(20), default="team", nullable=False)
    delivery_mode = Column(String(20), default="team", nullable=False)
    
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    
    # Relationships
    staff = relationship("StaffUser", back_populates="restaurant")
    orders = relationship("Order", back_populates="restaurant")


class StaffUser(Base):
    """Staff member working orders"""
    __tablename__ = "staff_users"
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    restaurant_id = Column(Uuid, ForeignKey("restaurants.id"), nullable=False)
    username = Column(String(100), nullable=False)
    display_name = Column(String(255))
    phone = Column(String(20))
    role = Column(String(20), nullable=False)  # cook, delivery, manager
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    
    # Relationships
    restaurant = relationship("Restaurant", back_populates="staff")
