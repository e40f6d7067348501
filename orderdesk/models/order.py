"""Order models"""

import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, JSON, Text, Integer, Numeric, Uuid
from sqlalchemy.orm import relationship

from orderdesk.database import Base


class Order(Base):
    """Customer order; holds only its current status"""
    __tablename__ = "orders"
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    restaurant_id = Column(Uuid, ForeignKey("restaurants.id"), nullable=False, index=True)
    order_number = Column(Integer)
    
    fulfillment = Column(String(20), nullable=False)  # delivery, pickup
    status = Column(String(20), nullable=False, default="received", index=True)
    
    # Customer contact for status SMS
    customer_name = Column(String(255))
    customer_phone = Column(String(20))
    delivery_address = Column(Text)
    
    # Timing
    placed_at = Column(DateTime(timezone=True), nullable=False, index=True)
    scheduled_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))
    cancelled_at = Column(DateTime(timezone=True))
    
    # Assignment
    cook_id = Column(Uuid, ForeignKey("staff_users.id"))
    driver_id = Column(Uuid, ForeignKey("staff_users.id"))
    
    # Payment
    payment_method = Column(String(50))
    payment_status = Column(String(50))  # paid, pending, refunded
    payment_intent_id = Column(String(255))
    
    # Pricing
    subtotal = Column(Numeric(10, 2), nullable=False, default=0)
    delivery_fee = Column(Numeric(10, 2), nullable=False, default=0)
    taxes = Column(Numeric(10, 2), nullable=False, default=0)
    tip_amount = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False, default=0)
    
    # Reasons
    cancellation_reason = Column(Text)
    failure_reason = Column(Text)
    
    # Relationships
    restaurant = relationship("Restaurant", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", lazy="selectin", order_by="OrderItem.position")


class OrderItem(Base):
    """Order line"""
    __tablename__ = "order_items"
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id = Column(Uuid, ForeignKey("orders.id"), nullable=False, index=True)
    menu_item_id = Column(Uuid)
    position = Column(Integer, default=0)
    
    name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(10, 2), nullable=False, default=0)
    total_price = Column(Numeric(10, 2), nullable=False, default=0)
    
    # [{"name": "Extra cheese", "price": "1.50"}, ...]
    modifiers = Column(JSON, default=list)
    
    # Relationships
    order = relationship("Order", back_populates="items")
