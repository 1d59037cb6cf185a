from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.sql import func
from gotrabandhus.core.database import Base


class User(Base):
    """
    Registered member and their profile.

    Passwords are stored as bcrypt hashes (never plaintext).
    profile_completed is derived from the other columns and is only written
    by the profile completion evaluator.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Stored lowercased; unique index also resolves concurrent registrations
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)

    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    nickname = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    gender = Column(String, nullable=True)  # male / female / other
    date_of_birth = Column(String, nullable=True)

    birth_city = Column(String, nullable=True)
    birth_state = Column(String, nullable=True)
    birth_country = Column(String, nullable=True)
    current_city = Column(String, nullable=False, default="")
    current_state = Column(String, nullable=False, default="")
    current_country = Column(String, nullable=False, default="")

    gotra = Column(String, nullable=False, default="")
    pravara = Column(String, nullable=False, default="")
    community = Column(String, nullable=False, default="")
    primary_language = Column(String, nullable=False, default="")
    secondary_language = Column(String, nullable=True)

    occupation = Column(String, nullable=True)
    company = Column(String, nullable=True)
    industry = Column(String, nullable=True)
    bio = Column(String, nullable=True)

    # Privacy settings
    hide_email = Column(Boolean, nullable=False, default=False)
    hide_phone = Column(Boolean, nullable=False, default=False)
    hide_dob = Column(Boolean, nullable=False, default=False)

    profile_completed = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
