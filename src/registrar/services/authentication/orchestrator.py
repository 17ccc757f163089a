import logging

from sqlalchemy.exc import IntegrityError

from ...errors import ChallengeExpired, DuplicateKey, Unauthorized, ValidationError
from ...models import UserAccount, utcnow
from .credentials import new_uid

logger = logging.getLogger(__name__)

FEDERATED_UID_PREFIX = {"google": "google_", "facebook": "fb_"}


class AuthOrchestrator:
    """Runs every login method and turns each success into one session."""

    def __init__(self, credentials, otp, email_tokens, sessions, activity):
        self.credentials = credentials
        self.otp = otp
        self.email_tokens = email_tokens
        self.sessions = sessions
        self.activity = activity

    @property
    def db(self):
        return self.credentials.session

    def _start_session(self, principal, role, provider):
        token, expires_at = self.sessions.create_session(principal, role, provider)
        self.activity.record("SESSION", f"Session created for user {principal.principal_name}")
        return token, expires_at

    # -------- password --------
    def password_login(self, identifier, password):
        match = self.credentials.verify_password(identifier, password)
        if match is None:
            # unknown identifier and wrong password look the same
            raise Unauthorized("Invalid username or password")
        principal, role = match

        if role == "admin":
            provider = "email"
            user = {"id": principal.id, "username": principal.username,
                    "role": principal.role, "authProvider": provider}
        else:
            provider = principal.auth_provider
            principal.last_login = utcnow()
            self.db.commit()
            user = {"id": principal.id, "email": principal.email,
                    "displayName": principal.display_name, "role": role,
                    "authProvider": provider}

        token, _ = self.sessions.create_session(principal, role, provider)
        who = "Admin" if role == "admin" else "User"
        self.activity.record("LOGIN", f"{who} {principal.principal_name} logged in via {provider}")
        return {"user": user, "authProvider": provider, "sessionToken": token}

    def register(self, email, password, display_name=None, phone=None):
        if self.credentials.user_by_email(email):
            raise DuplicateKey("Email already registered")

        user = UserAccount(
            uid=new_uid("user_"),
            email=email,
            password_hash=self.credentials.hash_password(password),
            display_name=display_name,
            phone=phone,
            auth_provider="email",
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateKey("Email already registered")

        self.activity.record("REGISTER", f"New user {email} registered")
        return user

    def change_password(self, context, current_password, new_password):
        principal = self.credentials.load_principal(context.role, context.user_id)
        if principal is None or not self.credentials.check_own_password(principal, current_password):
            raise ValidationError("Current password is incorrect")
        self.credentials.set_password(principal, new_password)
        kind = "admin" if context.role == "admin" else "user"
        self.activity.record("PASSWORD_CHANGE", f"Password changed for {kind} {principal.principal_name}")

    # -------- phone / OTP --------
    def send_otp(self, phone):
        challenge = self.otp.issue(phone)
        # demonstration-mode delivery
        logger.info("[DEMO] OTP for %s: %s", phone, challenge.code)
        self.activity.record("OTP_SENT", f"OTP sent to {phone}")
        return challenge.code

    def verify_otp(self, phone, code):
        self.otp.verify(phone, code)
        self.activity.record("OTP_VERIFIED", f"Phone {phone} verified")

    def phone_login(self, phone, code):
        challenge = self.otp.consumable(phone, code)
        if challenge is None:
            raise Unauthorized("Invalid or unverified OTP")
        if self.otp.is_expired(challenge):
            raise ChallengeExpired("OTP expired")

        user = self.credentials.user_by_phone(phone)
        if user is None:
            user = UserAccount(
                uid=new_uid("phone_"),
                phone=phone,
                phone_verified=True,
                auth_provider="phone",
            )
            self.db.add(user)
        else:
            user.phone_verified = True
            user.last_login = utcnow()
        self.db.commit()

        token, _ = self._start_session(user, "user", "phone")
        return {
            "user": {"id": user.id, "username": user.principal_name, "authProvider": "phone"},
            "sessionToken": token,
        }

    # -------- email verification --------
    def send_email_verification(self, email):
        challenge = self.email_tokens.issue(email)
        link = f"/verify-email?token={challenge.token}"
        logger.info("[DEMO] Email verification link for %s: %s", email, link)
        self.activity.record("EMAIL_SENT", f"Verification email sent to {email}")
        return link

    def verify_email(self, email, token):
        self.email_tokens.verify(email, token)
        UserAccount.query.filter_by(email=email).update({"email_verified": True})
        self.db.commit()
        self.activity.record("EMAIL_VERIFIED", f"Email {email} verified")

    # -------- federated (simulated) --------
    def federated_login(self, provider, external_id, email, display_name=None, photo_url=None):
        # claims are trusted as given; nothing is verified with the provider
        user = self.credentials.user_by_email(email)
        if user is None:
            user = UserAccount(
                uid=new_uid(FEDERATED_UID_PREFIX[provider]),
                email=email,
                display_name=display_name,
                photo_url=photo_url,
                email_verified=True,
                auth_provider=provider,
                provider_id=external_id,
            )
            self.db.add(user)
        else:
            user.last_login = utcnow()
        self.db.commit()

        token, _ = self._start_session(user, "user", provider)
        return {
            "user": {"id": user.id, "username": user.email, "authProvider": provider},
            "sessionToken": token,
        }

    def logout(self):
        context = self.sessions.current()
        self.sessions.destroy_session()
        if context is not None:
            self.activity.record("LOGOUT", f"User {context.principal_name} logged out")
