"""Initialize database tables and create initial data if needed"""
import logging
from homestock.db.base import Base
from homestock.db.session import engine, SessionLocal
from homestock.models.user import User
from homestock.services.auth_service import get_password_hash
from homestock.core.config import settings

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Create all database tables"""
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Error creating database tables: {str(e)}")
        raise


def create_initial_data() -> None:
    """Seed the first admin account from environment configuration"""
    if not (settings.SUPER_ADMIN_EMAIL and settings.SUPER_ADMIN_PASSWORD):
        logger.info("SUPER_ADMIN_EMAIL/SUPER_ADMIN_PASSWORD not set, skipping admin seeding")
        return

    db = SessionLocal()
    try:
        if db.query(User).count() == 0:
            admin = User.new_password_account(
                email=settings.SUPER_ADMIN_EMAIL,
                full_name=settings.SUPER_ADMIN_FULL_NAME,
                hashed_password=get_password_hash(settings.SUPER_ADMIN_PASSWORD),
            )
            admin.is_admin = True
            db.add(admin)
            db.commit()
            logger.warning(f"Initial admin created: {admin.email}")

    except Exception as e:
        logger.error(f"Error creating initial data: {str(e)}")
        db.rollback()
    finally:
        db.close()
