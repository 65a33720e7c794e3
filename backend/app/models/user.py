from sqlalchemy import Boolean, Column, Date, DateTime, String, Text, Uuid
from sqlalchemy.sql import func
import uuid
from app.db.database import Base
from app.db.types import JSONDocument


class User(Base):
    __tablename__ = "users"

    user_id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    # Stored as submitted; hashing belongs to the auth workflow
    password = Column(String, nullable=False)
    dob = Column(Date, nullable=False)
    gender = Column(String(6), nullable=False)  # "male", "female" or "other"
    phone_number = Column(String(10), nullable=False)
    address = Column(Text, nullable=False)
    profile_picture = Column(Text, nullable=True)  # image URL

    # Nested records stored inline
    payment_information = Column(JSONDocument, nullable=False)
    security_questions = Column(JSONDocument, nullable=False)

    terms_and_conditions = Column(Boolean, nullable=False)
    privacy_policy = Column(Boolean, nullable=False)
    interests = Column(JSONDocument, nullable=False, default=list)
    # Passport number, driver's license number, etc.
    user_identification = Column(String, unique=True, nullable=False, index=True)
    additional_info = Column(Text, nullable=True)
    is_admin = Column(Boolean, default=False, nullable=False)
    # Ordered list of {"token": ...} entries
    tokens = Column(JSONDocument, nullable=False, default=list)

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
