"""Order event model"""

from sqlalchemy import Column, String, DateTime, ForeignKey, JSON, Integer, Uuid

from orderdesk.database import Base


class OrderEvent(Base):
    """
    Append-only status change record.
    The integer id doubles as the sequence used to order equal timestamps.
    """
    __tablename__ = "order_events"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Uuid, ForeignKey("orders.id"), nullable=False, index=True)
    restaurant_id = Column(Uuid, ForeignKey("restaurants.id"), nullable=False, index=True)
    
    # Actor information
    actor_type = Column(String(50), nullable=False)  # cook, delivery, manager, system
    actor_id = Column(Uuid)
    
    event_type = Column(String(50), nullable=False, default="status_changed")
    
    # {"status": "cancelled", "reason": "..."}
    payload = Column(JSON, nullable=False)
    
    created_at = Column(DateTime(timezone=True), nullable=False)
