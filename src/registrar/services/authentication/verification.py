import secrets
from datetime import timedelta

from ...errors import ChallengeExpired, ChallengeNotFound
from ...models import EmailVerificationToken, OtpChallenge, as_utc, utcnow


def generate_otp():
    return f"{secrets.randbelow(900000) + 100000}"


def generate_token():
    return secrets.token_hex(32)


class VerificationLedger:
    """Short-lived secrets proving control of a phone number or an email address.

    One instance per challenge kind. ``key_field`` names the column holding the
    subject (phone or email) and ``secret_field`` the column holding the secret.
    """

    def __init__(self, session, model, key_field, secret_field, ttl_seconds, secret_factory):
        self.session = session
        self.model = model
        self.key_field = key_field
        self.secret_field = secret_field
        self.ttl = timedelta(seconds=ttl_seconds)
        self.secret_factory = secret_factory

    def _lookup(self, subject_key, secret):
        return self.model.query.filter_by(
            **{self.key_field: subject_key, self.secret_field: secret}
        ).first()

    @staticmethod
    def is_expired(challenge, now=None):
        return (now or utcnow()) > as_utc(challenge.expires_at)

    def issue(self, subject_key):
        """Replace any earlier challenge for ``subject_key`` with a fresh one."""
        self.model.query.filter_by(**{self.key_field: subject_key}).delete()
        challenge = self.model(**{
            self.key_field: subject_key,
            self.secret_field: self.secret_factory(),
            "expires_at": utcnow() + self.ttl,
        })
        self.session.add(challenge)
        # supersession and insert land in one transaction
        self.session.commit()
        return challenge

    def verify(self, subject_key, secret):
        challenge = self._lookup(subject_key, secret)
        if challenge is None:
            raise ChallengeNotFound()
        if self.is_expired(challenge):
            raise ChallengeExpired()
        # kept after verification so a later login step can consume it
        challenge.verified = True
        self.session.commit()
        return challenge

    def consumable(self, subject_key, secret):
        """Return the verified challenge for the pair, or ``None`` when there is none.

        Expiry is checked again by the caller; a verified challenge can still be stale.
        """
        challenge = self._lookup(subject_key, secret)
        if challenge is None or not challenge.verified:
            return None
        return challenge


def otp_ledger(session, ttl_seconds):
    return VerificationLedger(session, OtpChallenge, "phone", "code", ttl_seconds, generate_otp)


def email_ledger(session, ttl_seconds):
    return VerificationLedger(
        session, EmailVerificationToken, "email", "token", ttl_seconds, generate_token
    )
