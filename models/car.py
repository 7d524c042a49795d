from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, Numeric, String, func

from database import Base


class Car(Base):
    __tablename__ = "cars"

    id = Column(Integer, primary_key=True, autoincrement=True)
    brand = Column(String(128), nullable=False, index=True)
    model = Column(String(128), nullable=False)
    year = Column(Integer, nullable=False)
    price = Column(Numeric(15, 2), nullable=False)
    engine = Column(String(128), nullable=True)
    transmission = Column(String(64), nullable=True)
    drive = Column(String(32), nullable=True)
    status = Column(String(16), nullable=False, default="available")  # available, sold, reserved
    is_new = Column(Boolean, nullable=False, default=True)
    supplier_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    images = Column(JSON, nullable=True)
    specifications = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
