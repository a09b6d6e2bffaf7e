from uuid import uuid4

from flask import current_app
from flask_login import UserMixin, current_user, login_user


class Visitor(UserMixin):
    """Anonymous per-browser identity. Its id is an opaque uuid string."""

    def __init__(self, visitor_id):
        self.id = visitor_id

    def to_dict(self):
        return {'id': self.id}


def load_visitor(visitor_id):
    return Visitor(visitor_id) if visitor_id else None


def ensure_visitor():
    """Log the caller in as a fresh visitor unless the cookie already names one."""
    if current_user.is_authenticated:
        return
    visitor = Visitor(str(uuid4()))
    login_user(visitor, remember=True)
    current_app.logger.info(f'[visitor-new] id={visitor.id}')
