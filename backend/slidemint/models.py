from sqlalchemy import Column, String, Text, DateTime, JSON, Boolean
from sqlalchemy.sql import func
from slidemint.database import Base


class CarouselRecord(Base):
    """A saved carousel deck."""
    __tablename__ = "carousels"

    id = Column(String(64), primary_key=True, index=True)
    user_id = Column(String(64), nullable=True, index=True)
    carousel_name = Column(String(255), nullable=False, default="Untitled Carousel")
    original_text = Column(Text, nullable=False, default="")

    # [{position, title, body}, ...]
    slides = Column(JSON, nullable=False, default=list)

    template = Column(String(20), nullable=False, default="dark")
    cover_style = Column(String(30), nullable=False, default="minimalist")
    background_color = Column(String(7), nullable=False, default="#000000")
    text_color = Column(String(7), nullable=False, default="#FFFFFF")
    accent_color = Column(String(7), nullable=False, default="#FFFFFF")
    aspect_ratio = Column(String(5), nullable=False, default="4:5")
    read_only = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
