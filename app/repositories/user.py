from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.models import Role as RoleModel
from app.db.models import User as UserModel
from app.errors import DuplicateResourceError, NotFoundError


def get_user_by_email(db: Session, email: str) -> UserModel | None:
    """Get a user by email."""
    return db.query(UserModel).filter(UserModel.email == email).first()


def get_user_by_id(db: Session, user_id: str) -> UserModel | None:
    """Get a user by ID."""
    return db.query(UserModel).filter(UserModel.id == user_id).first()


def create_user(
    db: Session,
    full_name: str,
    email: str,
    password_hash: str,
    role: RoleModel,
) -> UserModel:
    """
    Insert a user and its role assignment in one transaction. Pure data access - no business logic.

    Raises:
        DuplicateResourceError: If another transaction inserted the same email first.
    """
    db_user = UserModel(
        full_name=full_name,
        email=email,
        password_hash=password_hash,
        is_active=True,
    )
    db_user.roles.append(role)
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateResourceError("User with this email already exists") from e
    db.refresh(db_user)
    return db_user


def update_user_password(db: Session, user_id: str, password_hash: str) -> UserModel:
    """Replace a user's password hash and bump updated_at."""
    user = get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")

    user.password_hash = password_hash
    user.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    return user


def set_stripe_customer_id(db: Session, user: UserModel, customer_id: str) -> UserModel:
    user.stripe_customer_id = customer_id
    user.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    return user
