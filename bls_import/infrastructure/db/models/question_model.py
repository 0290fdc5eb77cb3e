from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, JSON
from sqlalchemy.sql import func
from ..base import Base


class QuestionModel(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    question_text = Column(Text, nullable=False)
    question_text_en = Column(Text, nullable=True)
    question_type = Column(String(50), nullable=False, default="multiple_choice")
    difficulty_level = Column(String(20), nullable=False, default="easy")
    category = Column(String(100), nullable=False, default="basic_life_support")
    points = Column(Integer, nullable=False, default=10)
    time_limit_seconds = Column(Integer, nullable=True)
    explanation = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    tags = Column(JSON, nullable=True)  # list of question set names
    test_type = Column(String(50), nullable=True)
    correct_answer = Column(String(1), nullable=True)

    option_a = Column(Text, nullable=True)
    option_a_en = Column(Text, nullable=True)
    option_b = Column(Text, nullable=True)
    option_b_en = Column(Text, nullable=True)
    option_c = Column(Text, nullable=True)
    option_c_en = Column(Text, nullable=True)
    option_d = Column(Text, nullable=True)
    option_d_en = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
