import secrets

from sqlalchemy import or_
from werkzeug.security import check_password_hash, generate_password_hash

from ...models import AdminAccount, UserAccount


def new_uid(prefix):
    """``user_``/``phone_``/``google_``/``fb_`` followed by 16 hex chars."""
    return f"{prefix}{secrets.token_hex(8)}"


class CredentialStore:
    """Admin and user identities with salted password hashes."""

    def __init__(self, session, hash_method=None):
        self.session = session
        self.hash_method = hash_method

    def hash_password(self, plaintext):
        if self.hash_method:
            return generate_password_hash(plaintext, method=self.hash_method)
        return generate_password_hash(plaintext)

    def verify_password(self, identifier, plaintext):
        """Return ``(principal, role)`` for a matching password, else ``None``.

        Admins are matched by username or email first, then users by email.
        """
        admin = AdminAccount.query.filter(
            or_(AdminAccount.username == identifier, AdminAccount.email == identifier)
        ).first()
        if admin and check_password_hash(admin.password_hash, plaintext):
            return admin, "admin"

        user = UserAccount.query.filter_by(email=identifier).first()
        if user and user.password_hash and check_password_hash(user.password_hash, plaintext):
            return user, "user"
        return None

    def check_own_password(self, principal, plaintext):
        return bool(principal.password_hash) and check_password_hash(principal.password_hash, plaintext)

    def set_password(self, principal, plaintext):
        # no history is kept
        principal.password_hash = self.hash_password(plaintext)
        self.session.commit()

    def load_principal(self, role, principal_id):
        if role == "admin":
            return self.session.get(AdminAccount, principal_id)
        if role == "user":
            return self.session.get(UserAccount, principal_id)
        return None

    def user_by_email(self, email):
        return UserAccount.query.filter_by(email=email).first()

    def user_by_phone(self, phone):
        return UserAccount.query.filter_by(phone=phone).first()
