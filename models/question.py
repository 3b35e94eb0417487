from sqlalchemy import Column, Integer, Text, JSON
from models.base import Base

class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, autoincrement=False)
    prompt = Column(Text, nullable=False)
    options = Column(JSON, nullable=False)  # ordered list of option strings
    correct_option_index = Column(Integer, nullable=False)
