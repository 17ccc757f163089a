from flask import Blueprint, current_app, jsonify, session
from flask_login import current_user, login_required

from .extensions import db
from .schemas import (
    ChangePasswordRequest, FacebookLoginRequest, GoogleLoginRequest, LoginRequest,
    PhoneOtpRequest, RegisterRequest, SendEmailVerificationRequest, SendOtpRequest,
    VerifyEmailRequest, parse_body,
)
from .services.activity_log import ActivityLog
from .services.authentication.credentials import CredentialStore
from .services.authentication.orchestrator import AuthOrchestrator
from .services.authentication.sessions import SessionManager
from .services.authentication.verification import email_ledger, otp_ledger

auth_bp = Blueprint("auth", __name__)


def session_manager():
    return SessionManager(db.session, session, current_app.config["SESSION_TTL_SECONDS"])


def orchestrator():
    """Wire the auth services to this request's DB session and cookie."""
    cfg = current_app.config
    return AuthOrchestrator(
        credentials=CredentialStore(db.session, cfg.get("PASSWORD_HASH_METHOD")),
        otp=otp_ledger(db.session, cfg["OTP_TTL_SECONDS"]),
        email_tokens=email_ledger(db.session, cfg["EMAIL_TOKEN_TTL_SECONDS"]),
        sessions=session_manager(),
        activity=ActivityLog(db.session),
    )


# -----------------------------
# Password
# -----------------------------
@auth_bp.post("/login")
def login():
    body = parse_body(LoginRequest)
    result = orchestrator().password_login(body.username, body.password)
    return jsonify({"success": True, "message": "Login successful", **result})


@auth_bp.post("/register")
def register():
    body = parse_body(RegisterRequest)
    user = orchestrator().register(body.email, body.password, body.display_name, body.phone)
    return jsonify({"success": True, "message": "Registration successful", "userId": user.id})


@auth_bp.post("/change-password")
@login_required
def change_password():
    body = parse_body(ChangePasswordRequest)
    auth = orchestrator()
    auth.change_password(auth.sessions.current(), body.current_password, body.new_password)
    return jsonify({"success": True, "message": "Password changed successfully"})


# -----------------------------
# Phone / OTP
# -----------------------------
@auth_bp.post("/send-otp")
def send_otp():
    body = parse_body(SendOtpRequest)
    code = orchestrator().send_otp(body.phone)
    # demo mode: the code goes straight back to the caller
    return jsonify({"success": True, "message": "OTP sent successfully", "demo": True, "otp": code})


@auth_bp.post("/verify-otp")
def verify_otp():
    body = parse_body(PhoneOtpRequest)
    orchestrator().verify_otp(body.phone, body.otp)
    return jsonify({"success": True, "message": "Phone verified successfully"})


@auth_bp.post("/login-phone")
def login_phone():
    body = parse_body(PhoneOtpRequest)
    result = orchestrator().phone_login(body.phone, body.otp)
    return jsonify({"success": True, "message": "Login successful", **result})


# -----------------------------
# Email verification
# -----------------------------
@auth_bp.post("/send-email-verification")
def send_email_verification():
    body = parse_body(SendEmailVerificationRequest)
    link = orchestrator().send_email_verification(body.email)
    return jsonify({"success": True, "message": "Verification email sent",
                    "demo": True, "verificationLink": link})


@auth_bp.post("/verify-email")
def verify_email():
    body = parse_body(VerifyEmailRequest)
    orchestrator().verify_email(body.email, body.token)
    return jsonify({"success": True, "message": "Email verified successfully"})


# -----------------------------
# Federated (simulated)
# -----------------------------
@auth_bp.post("/google")
def google_login():
    body = parse_body(GoogleLoginRequest)
    result = orchestrator().federated_login(
        "google", body.id_token, body.email, body.display_name, body.photo_url
    )
    return jsonify({"success": True, "message": "Login successful", **result})


@auth_bp.post("/facebook")
def facebook_login():
    body = parse_body(FacebookLoginRequest)
    result = orchestrator().federated_login(
        "facebook", body.access_token, body.email, body.display_name, body.photo_url
    )
    return jsonify({"success": True, "message": "Login successful", **result})


# -----------------------------
# Session
# -----------------------------
@auth_bp.post("/logout")
def logout():
    orchestrator().logout()
    return jsonify({"success": True, "message": "Logged out successfully"})


@auth_bp.get("/status")
def status():
    context = session_manager().current()
    # the loader rejects expired rows when ENFORCE_SESSION_EXPIRY is on
    if context is None or not current_user.is_authenticated:
        return jsonify({"authenticated": False})
    return jsonify({"authenticated": True, "user": context.to_dict()})
