from datetime import timedelta

import pytest

from registrar.errors import ChallengeExpired, ChallengeNotFound
from registrar.extensions import db
from registrar.models import OtpChallenge, as_utc, utcnow
from registrar.services.authentication.verification import email_ledger, otp_ledger


@pytest.fixture
def otp(ctx):
    return otp_ledger(db.session, 300)


def test_issue_generates_six_digit_code(otp):
    challenge = otp.issue("+910000000000")
    assert len(challenge.code) == 6 and challenge.code.isdigit()
    assert challenge.verified is False


def test_new_issue_supersedes_previous(otp, monkeypatch):
    codes = iter(["111111", "222222"])
    monkeypatch.setattr(otp, "secret_factory", lambda: next(codes))
    otp.issue("+910000000000")
    otp.issue("+910000000000")
    assert OtpChallenge.query.filter_by(phone="+910000000000").count() == 1
    with pytest.raises(ChallengeNotFound):
        otp.verify("+910000000000", "111111")
    assert otp.verify("+910000000000", "222222").verified is True


def test_verify_requires_matching_subject(otp):
    code = otp.issue("+911111111111").code
    with pytest.raises(ChallengeNotFound):
        otp.verify("+912222222222", code)


def test_verify_marks_verified_and_keeps_row(otp):
    code = otp.issue("+911111111111").code
    otp.verify("+911111111111", code)
    challenge = otp.consumable("+911111111111", code)
    assert challenge is not None and challenge.verified is True


def test_expired_challenge_fails_verification(otp):
    challenge = otp.issue("+911111111111")
    challenge.expires_at = utcnow() - timedelta(seconds=1)
    db.session.commit()
    with pytest.raises(ChallengeExpired):
        otp.verify("+911111111111", challenge.code)


def test_unverified_challenge_is_not_consumable(otp):
    code = otp.issue("+911111111111").code
    assert otp.consumable("+911111111111", code) is None


def test_email_token_expiry_and_entropy(ctx):
    ledger = email_ledger(db.session, 24 * 3600)
    challenge = ledger.issue("x@school.edu")
    assert len(challenge.token) == 64
    int(challenge.token, 16)
    remaining = as_utc(challenge.expires_at) - utcnow()
    assert timedelta(hours=23) < remaining <= timedelta(hours=24)
