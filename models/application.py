from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text, func

from database import Base


class LeasingApplication(Base):
    __tablename__ = "leasing_applications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    agent_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    object_cost = Column(Numeric(15, 2), nullable=False)
    down_payment = Column(Numeric(5, 2), nullable=False)  # percent
    leasing_term = Column(Integer, nullable=False)  # months
    leasing_type = Column(String(32), nullable=False)
    client_phone = Column(String(64), nullable=False)
    client_inn = Column(String(32), nullable=False)
    is_new_object = Column(Boolean, nullable=False, default=True)
    is_for_rental = Column(Boolean, nullable=False, default=False)
    comment = Column(Text, nullable=True)
    status = Column(String(32), nullable=False, default="pending", index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class LeasingOffer(Base):
    __tablename__ = "leasing_offers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(Integer, ForeignKey("leasing_applications.id"), nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("leasing_companies.id"), nullable=False)
    manager_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    monthly_payment = Column(Numeric(15, 2), nullable=False)
    first_payment = Column(Numeric(15, 2), nullable=False)
    buyout_payment = Column(Numeric(15, 2), nullable=False)
    total_cost = Column(Numeric(15, 2), nullable=False)
    interest_rate = Column(Numeric(5, 2), nullable=True)
    is_selected = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Document(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(Integer, ForeignKey("leasing_applications.id"), nullable=False, index=True)
    file_name = Column(String(512), nullable=False)
    file_url = Column(String(1024), nullable=False)
    document_type = Column(String(64), nullable=False)
    uploaded_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class ApplicationMessage(Base):
    __tablename__ = "application_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(Integer, ForeignKey("leasing_applications.id"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    message = Column(Text, nullable=False)
    is_system_message = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
