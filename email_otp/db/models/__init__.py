from email_otp.db.models.user import User

__all__ = ["User"]
