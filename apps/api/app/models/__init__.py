from app.models.account import Account
from app.models.application_password import ApplicationPassword

__all__ = ["Account", "ApplicationPassword"]
