import logging
import re
import secrets

from flask import jsonify, request
from flask_login import current_user, login_required, login_user, logout_user
from sqlalchemy.exc import IntegrityError

from app import db, limiter, login_manager
from app.models import User
from app.routes.auth import bp

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{3,80}$")
MIN_PASSWORD_LENGTH = 6


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({"error": "Authentication required"}), 401


def _validate_registration(data):
    """Check registration input (returns error message or None)"""
    username = (data.get("username") or "").strip()
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    if not USERNAME_PATTERN.match(username):
        return "Username must be 3-80 characters (letters, digits, . _ -)"
    if username.startswith("guest_"):
        return "Usernames starting with guest_ are reserved"
    if "@" not in email:
        return "A valid email is required"
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    if User.query.filter_by(username=username).first():
        return "Username already taken"
    if User.query.filter_by(email=email).first():
        return "Email already registered"
    return None


@bp.route("/register", methods=["POST"])
@limiter.limit("5 per hour")
def register():
    data = request.get_json(silent=True) or {}

    error = _validate_registration(data)
    if error:
        return jsonify({"error": error}), 400

    # New players join at the bottom of the table until the next scoring pass
    user = User(
        username=data["username"].strip(),
        email=data["email"].strip().lower(),
        rank=User.next_rank(),
        rank_history=[],
    )
    user.set_password(data["password"])
    user.set_display_name(data.get("display_name") or data["username"])

    try:
        db.session.add(user)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "Username or email already registered"}), 400

    # Cached leaderboards do not list the new player yet
    from app.utils.cache_utils import invalidate_league_cache

    invalidate_league_cache()

    login_user(user)
    logger.info(f"New user registered: {user.username} (rank {user.rank})")

    return jsonify({"message": "Registration successful", "user": user.to_dict(include_standing=True)}), 201


@bp.route("/guest", methods=["POST"])
@limiter.limit("20 per hour")
def guest():
    """Browse the league without taking part in the ranking"""
    user = User(
        username=f"guest_{secrets.token_hex(6)}",
        display_name="Visitante",
        is_guest=True,
        rank=0,
        rank_history=[],
    )
    db.session.add(user)
    db.session.commit()

    login_user(user)
    logger.info(f"Guest session started: {user.username}")

    return jsonify({"message": "Guest session started", "user": user.to_dict()}), 201


@bp.route("/login", methods=["POST"])
@limiter.limit("10 per minute")
def login():
    data = request.get_json(silent=True) or {}
    username = (data.get("username") or "").strip()
    password = data.get("password") or ""

    user = User.query.filter_by(username=username).first()
    if not user or not user.check_password(password):
        logger.warning(f"Failed login attempt for {username!r}")
        return jsonify({"error": "Invalid username or password"}), 401

    if not user.is_active:
        return jsonify({"error": "Your account has been deactivated"}), 403

    login_user(user, remember=bool(data.get("remember_me")))
    user.update_last_login()
    db.session.commit()

    return jsonify({"message": f"Welcome back, {user.full_name}!", "user": user.to_dict(include_standing=True)})


@bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify({"message": "You have been logged out successfully"})


@bp.route("/me")
@login_required
def me():
    return jsonify(current_user.to_dict(include_standing=not current_user.is_guest))


@bp.route("/me", methods=["PATCH"])
@login_required
def update_profile():
    """Change the display name shown on the leaderboard"""
    if current_user.is_guest:
        return jsonify({"error": "Guests cannot edit a profile"}), 403

    data = request.get_json(silent=True) or {}
    display_name = (data.get("display_name") or "").strip()
    if not display_name or len(display_name) > 100:
        return jsonify({"error": "Display name must be 1-100 characters"}), 400

    current_user.set_display_name(display_name)
    db.session.commit()

    # Cached leaderboards show the old name
    from app.utils.cache_utils import invalidate_league_cache

    invalidate_league_cache()

    return jsonify({"message": "Profile updated", "user": current_user.to_dict(include_standing=True)})
