import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from flipbook.exceptions import AdminExistsError
from flipbook.models.admin import Admin
from flipbook.utils.hash import hash_password, verify_password

logger = logging.getLogger(__name__)


def get_admin(session: Session) -> Optional[Admin]:
    """The single admin record, if one has been registered."""
    return session.exec(select(Admin)).first()


def admin_exists(session: Session) -> bool:
    admin = get_admin(session)
    return admin is not None and admin.is_registered


def create_admin(session: Session, email: str, password: str) -> Admin:
    if get_admin(session) is not None:
        logger.warning("Rejected admin registration: admin already exists")
        raise AdminExistsError()

    admin = Admin(
        email=email.strip().lower(),
        password=hash_password(password),
        is_registered=True,
    )
    session.add(admin)
    try:
        session.commit()
    except IntegrityError:
        # lost a concurrent registration between the check and the insert
        session.rollback()
        logger.warning("Rejected admin registration: admin slot already taken")
        raise AdminExistsError()
    session.refresh(admin)
    logger.info(f"Admin registered: {admin.email}")
    return admin


def authenticate(session: Session, email: str, password: str) -> Optional[Admin]:
    admin = session.exec(
        select(Admin).where(Admin.email == email.strip().lower())
    ).first()
    if not admin or not verify_password(password, admin.password):
        return None
    return admin
