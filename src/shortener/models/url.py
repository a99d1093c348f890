from sqlalchemy import Column, String, Text
from src.shortener.core.config import MAX_CODE_LENGTH
from src.shortener.db.base import BaseModel


class URL(BaseModel):
    __tablename__ = "urls"

    code = Column(String(MAX_CODE_LENGTH), unique=True, index=True, nullable=False)
    original_url = Column(Text, nullable=False)
