from .Manager import AuthManager, LoginForm, choose_identity

__all__ = ["AuthManager", "LoginForm", "choose_identity"]
