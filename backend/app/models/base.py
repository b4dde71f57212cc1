from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Import all models here so that Alembic and SQLAlchemy know about them.
from app.models.user import User
from app.models.idea import Idea
