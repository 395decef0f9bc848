from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from database import Base


class Lender(Base):
    __tablename__ = "lenders"

    id = Column(String(64), primary_key=True, index=True)
    name = Column(String(256), nullable=False, unique=True)
    contact_name = Column(String(256), nullable=True)
    contact_email = Column(String(256), nullable=True)
    contact_phone = Column(String(64), nullable=True)
    website = Column(String(512), nullable=True)
    country = Column(String(16), nullable=True)
    min_loan_amount = Column(Float, nullable=True)
    max_loan_amount = Column(Float, nullable=True)
    funding_speed = Column(String(16), nullable=True)
    submission_method = Column(String(16), nullable=True)
    submission_email = Column(String(256), nullable=True)
    api_url = Column(String(512), nullable=True)
    api_token = Column(String(512), nullable=True)
    description = Column(Text, nullable=True)
    status = Column(String(32), nullable=False, default="active", index=True)
    # Incremented by the mapper on every UPDATE, which also matches on the loaded value
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    products = relationship("LenderProduct", back_populates="lender", cascade="all, delete-orphan")

    __mapper_args__ = {"version_id_col": version}


class LenderProduct(Base):
    __tablename__ = "lender_products"

    id = Column(String(64), primary_key=True, index=True)
    lender_id = Column(String(64), ForeignKey("lenders.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(256), nullable=False)
    category = Column(String(32), nullable=False, index=True)
    country_offered = Column(String(2), nullable=True)
    min_amount = Column(Float, nullable=True)
    max_amount = Column(Float, nullable=True)
    min_rate = Column(Float, nullable=True)
    max_rate = Column(Float, nullable=True)
    rate_type = Column(String(16), nullable=True)
    min_term_months = Column(Float, nullable=True)
    max_term_months = Column(Float, nullable=True)
    description = Column(Text, nullable=True)
    # Canonical eligibility rules (snake_case keys)
    rules = Column(JSON, nullable=False, default=dict)
    required_documents = Column(JSON, nullable=False, default=list)
    status = Column(String(32), nullable=False, default="active", index=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    lender = relationship("Lender", back_populates="products")

    __mapper_args__ = {"version_id_col": version}
