from sqlalchemy.orm import Session

from app.db.models import Role as RoleModel


def get_role_by_name(db: Session, name: str) -> RoleModel | None:
    return db.query(RoleModel).filter(RoleModel.name == name).first()
