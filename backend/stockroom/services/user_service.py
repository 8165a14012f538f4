# Overview: Service-layer operations for user accounts; encapsulates business logic and database work.

"""
User directory

Every user has exactly one role. Store managers must carry the store
location they request stock for; for any other role the location is cleared.

Passwords are optional (an account without one cannot log in). When given
they are hashed with bcrypt and must be at least MIN_PASSWORD_LENGTH long.
"""

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import SessionToken, StockRequest, User
from ..permissions import Role, parse_role
from ..time_utils import utcnow
from ..validation import ConflictError, NotFoundError, ValidationError
from .concurrency import run_atomic
from .fulfillment_service import discard_tracker


USER_UPDATABLE_FIELDS = {"name", "email", "role", "storeLocation", "password"}


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    min_length = current_app.config.get("MIN_PASSWORD_LENGTH", 8)
    if not isinstance(password, str) or len(password) < min_length:
        raise PasswordValidationError(f"Password must be at least {min_length} characters long")


def hash_password(password: str) -> str:
    """Validate then hash with bcrypt; the cost factor comes from BCRYPT_ROUNDS."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Check a password against a stored bcrypt hash.

    Accounts without a hash never verify.
    """
    if not password_hash or not password:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash in the database
        return False


def _normalize_email(email) -> str:
    if not isinstance(email, str) or not email.strip():
        raise ValidationError("email is required")
    value = email.strip().lower()
    if "@" not in value:
        raise ValidationError("email must be a valid address")
    return value


def _normalize_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name is required")
    return name.strip()


def _resolve_role_location(role, store_location) -> tuple[str, str | None]:
    try:
        parsed = parse_role(role)
    except ValueError as e:
        raise ValidationError(str(e))

    if parsed is Role.STORE_MANAGER:
        location = store_location.strip() if isinstance(store_location, str) else ""
        if not location:
            raise ValidationError("storeLocation is required for store managers")
        return parsed.value, location
    return parsed.value, None


def _ensure_email_free(email: str, exclude_user_id: int | None = None) -> None:
    query = db.session.query(User.id).filter(User.email == email)
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    if query.first():
        raise ConflictError("Email already in use")


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    return user


def get_user_by_email(email: str) -> User | None:
    if not email:
        return None
    return db.session.query(User).filter_by(email=email.strip().lower()).first()


def create_user(
    *,
    name: str,
    email: str,
    role: str,
    store_location: str | None = None,
    password: str | None = None,
) -> User:
    """
    Create a user.

    Raises:
        ValidationError: Bad name/email/role or missing store for a store manager
        PasswordValidationError: Password shorter than MIN_PASSWORD_LENGTH
        ConflictError: Email already registered
    """
    name = _normalize_name(name)
    email = _normalize_email(email)
    role_value, location = _resolve_role_location(role, store_location)
    password_hash = hash_password(password) if password else None

    def _op():
        _ensure_email_free(email)
        user = User(
            name=name,
            email=email,
            role=role_value,
            store_location=location,
            password_hash=password_hash,
            created_at=utcnow(),
        )
        db.session.add(user)
        db.session.flush()
        return user

    user = run_atomic(_op)
    current_app.logger.info("Created user %s (%s)", user.id, user.role)
    return user


def update_user(user_id: int, updates: dict) -> User:
    """
    Apply a partial update. Keys: name, email, role, storeLocation, password.

    Changing the role away from store-manager clears the store location;
    changing to store-manager requires one (new or already on file).
    """
    if not isinstance(updates, dict):
        raise ValidationError("updates must be an object")
    unknown = sorted(set(updates) - USER_UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Field not allowed: {', '.join(unknown)}")

    password_hash = hash_password(updates["password"]) if updates.get("password") else None

    def _op():
        user = get_user(user_id)

        if "name" in updates:
            user.name = _normalize_name(updates["name"])

        if "email" in updates:
            email = _normalize_email(updates["email"])
            _ensure_email_free(email, exclude_user_id=user.id)
            user.email = email

        if "role" in updates or "storeLocation" in updates:
            role = updates.get("role", user.role)
            location = updates.get("storeLocation", user.store_location)
            user.role, user.store_location = _resolve_role_location(role, location)

        if password_hash:
            user.password_hash = password_hash

        db.session.flush()
        return user

    user = run_atomic(_op)
    current_app.logger.info("Updated user %s", user.id)
    return user


def delete_user(user_id: int) -> None:
    """
    Delete a user together with the requests they submitted (and those
    requests' lines) and their sessions. Requests they merely processed are
    kept, with processed_by cleared. Trackers for the deleted requests are
    discarded after commit.
    """
    def _op():
        user = get_user(user_id)

        submitted = db.session.query(StockRequest).filter_by(user_id=user.id).all()
        request_ids = [stock_request.id for stock_request in submitted]
        for stock_request in submitted:
            db.session.delete(stock_request)

        db.session.query(StockRequest).filter_by(processed_by=user.id).update(
            {StockRequest.processed_by: None}, synchronize_session="fetch"
        )
        db.session.query(SessionToken).filter_by(user_id=user.id).delete(synchronize_session="fetch")
        db.session.delete(user)
        db.session.flush()
        return request_ids

    request_ids = run_atomic(_op)
    for request_id in request_ids:
        discard_tracker(request_id)
    current_app.logger.info("Deleted user %s (%s requests removed)", user_id, len(request_ids))


def authenticate(email: str, password: str) -> User | None:
    """Return the user when the credentials match, else None."""
    user = get_user_by_email(email)
    if user is None or not verify_password(password, user.password_hash):
        return None
    user.last_login_at = utcnow()
    db.session.commit()
    return user
