from app.db.models.role import Role, user_roles
from app.db.models.user import User
from app.db.models.reset_token import PasswordResetToken

__all__ = ["Role", "User", "PasswordResetToken", "user_roles"]
