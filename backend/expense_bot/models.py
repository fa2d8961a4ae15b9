from sqlalchemy import Column, Integer, String, Float, DateTime, JSON, func
from datetime import datetime
from .database import Base

class BotState(Base):
    __tablename__ = "bot_states"

    user_id = Column(String, primary_key=True, index=True)  # sender phone
    data = Column(JSON, nullable=False)                      # {"step": ..., "draft": {...}}
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)

    amount = Column(Float, nullable=False)
    date = Column(String(10), nullable=False, index=True)  # YYYY-MM-DD, local calendar date
    category = Column(String, nullable=False, index=True)  # 'Racional', 'Negocio' or 'Rebeca'
    note = Column(String, nullable=False, default="")

    phone = Column(String, index=True)                      # sender that confirmed it
    created_at = Column(DateTime, nullable=False, server_default=func.now())

class ProcessedMessage(Base):
    __tablename__ = "processed_messages"

    message_id = Column(String, primary_key=True)  # provider message id
    phone = Column(String, index=True)
    created_at = Column(DateTime, default=datetime.now)
