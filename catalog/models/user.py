from flask_login import UserMixin


class CatalogUser(UserMixin):
    """Identity forwarded by the gateway authorizer; never stored locally."""

    def __init__(self, user_id, groups=(), admin_group='ADMIN'):
        self.id = user_id
        self.groups = tuple(groups)
        self.admin_group = admin_group

    def is_admin(self):
        return self.admin_group in self.groups

    def __repr__(self):
        return f'<CatalogUser {self.id}>'
