from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, Numeric, String, Text, func

from database import Base


class LeasingCompany(Base):
    __tablename__ = "leasing_companies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(256), nullable=False)
    description = Column(Text, nullable=True)
    logo = Column(String(512), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    # Eligibility bounds; NULL means no constraint on that side.
    min_amount = Column(Numeric(15, 2), nullable=True)
    max_amount = Column(Numeric(15, 2), nullable=True)
    min_term = Column(Integer, nullable=True)
    max_term = Column(Integer, nullable=True)
    interest_rate = Column(Numeric(5, 2), nullable=True)
    max_leasing_term = Column(Integer, nullable=True)
    requirements = Column(JSON, nullable=True)
    work_with_used = Column(Boolean, nullable=False, default=True)
    work_with_auto = Column(Boolean, nullable=False, default=True)
    work_with_equipment = Column(Boolean, nullable=False, default=True)
    work_with_real_estate = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
