from sqlalchemy.orm import Session
from app.core.security import hash_password
from app.models.admin_db.admin_db import Admin


def get_admin_by_username(db: Session, username: str):
    return db.query(Admin).filter(Admin.username == username).first()


def create_admin(db: Session, username: str, password: str) -> Admin:
    admin = Admin(username=username, hashed_password=hash_password(password))
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


def ensure_admin(db: Session, username: str, password: str) -> Admin:
    admin = get_admin_by_username(db, username)
    if admin:
        return admin
    return create_admin(db, username, password)
