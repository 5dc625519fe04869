"""
User (profile) and role service
"""
import logging
from typing import Any, Iterable, List, Optional

from sqlalchemy.orm import Session

from itam.core.config import settings
from itam.core.exceptions import DuplicateProfileError, NotFoundError, ValidationFailedError
from itam.core.security import hash_password, validate_password, verify_password
from itam.db.unit_of_work import atomic
from itam.models.audit_log import AuditAction, AuditEntityType
from itam.models.user import AppRole, Profile, UserRole
from itam.services.audit_service import log_audit
from itam.services.lifecycle import OperationResult
from itam.utils.json_serializer import model_snapshot

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _snapshot(profile: Profile) -> dict:
    values = model_snapshot(profile)
    values["roles"] = sorted(profile.role_names)
    return values


def get_profile(db: Session, user_id: int) -> Profile:
    profile = db.query(Profile).filter(Profile.id == user_id).first()
    if not profile:
        raise NotFoundError("profile", user_id)
    return profile


def get_profile_by_email(db: Session, email: str) -> Optional[Profile]:
    return db.query(Profile).filter(Profile.email == _normalize_email(email)).first()


def list_profiles(db: Session) -> List[Profile]:
    return db.query(Profile).order_by(Profile.email).all()


def authenticate(db: Session, email: str, password: str) -> Optional[Profile]:
    """Profile matching the credentials, or None. Inactive profiles are returned; the caller rejects them."""
    profile = get_profile_by_email(db, email)
    if profile is None or not verify_password(password, profile.password_hash):
        return None
    return profile


def create_profile(
    db: Session,
    actor: Optional[Any],
    email: str,
    password: str,
    full_name: Optional[str] = None,
    roles: Iterable[AppRole] = (),
) -> OperationResult:
    """
    Create an application user with a role set.

    Raises:
        ValidationFailedError: password too short or too long
        DuplicateProfileError: email already registered
    """
    try:
        password = validate_password(password)
    except ValueError as e:
        raise ValidationFailedError(str(e))
    email = _normalize_email(email)

    with atomic(db, "create_profile", email=email):
        if get_profile_by_email(db, email) is not None:
            raise DuplicateProfileError(email)
        profile = Profile(
            email=email,
            full_name=full_name,
            password_hash=hash_password(password),
            is_active=True,
        )
        profile.roles = [UserRole(role=role) for role in dict.fromkeys(roles)]
        db.add(profile)
        db.flush()
        log_audit(
            db, actor, AuditAction.CREATE, AuditEntityType.PROFILE, profile.id,
            new_values=_snapshot(profile),
        )

    db.refresh(profile)
    logger.info("Profile %s (%s) created with roles %s", profile.id, email, sorted(profile.role_names))
    return OperationResult(profile, [f"profile:{profile.id}", "profiles"])


def set_roles(db: Session, actor: Optional[Any], user_id: int, roles: Iterable[AppRole]) -> OperationResult:
    """Replace a user's role set."""
    with atomic(db, "set_roles", user_id=user_id):
        profile = get_profile(db, user_id)
        old_values = _snapshot(profile)
        wanted = {AppRole(r) for r in roles}
        for user_role in list(profile.roles):
            if user_role.role not in wanted:
                profile.roles.remove(user_role)
        current = {r.role for r in profile.roles}
        for role in sorted(wanted - current, key=lambda r: r.value):
            profile.roles.append(UserRole(role=role))
        db.flush()
        log_audit(
            db, actor, AuditAction.UPDATE, AuditEntityType.PROFILE, profile.id,
            old_values=old_values, new_values=_snapshot(profile),
        )

    db.refresh(profile)
    return OperationResult(profile, [f"profile:{user_id}", "profiles"])


def set_active(db: Session, actor: Optional[Any], user_id: int, is_active: bool) -> OperationResult:
    with atomic(db, "set_profile_active", user_id=user_id):
        profile = get_profile(db, user_id)
        old_values = _snapshot(profile)
        profile.is_active = is_active
        db.flush()
        log_audit(
            db, actor, AuditAction.UPDATE, AuditEntityType.PROFILE, profile.id,
            old_values=old_values, new_values=_snapshot(profile),
        )

    db.refresh(profile)
    return OperationResult(profile, [f"profile:{user_id}", "profiles"])


def bootstrap_initial_admin(db: Session) -> Optional[Profile]:
    """
    Create the bootstrap admin account when no admin exists.

    Returns:
        The created profile, or None when an admin already exists
    """
    admin_exists = db.query(UserRole).filter(UserRole.role == AppRole.ADMIN).first()
    if admin_exists:
        logger.info("Admin user already exists, skipping initial bootstrap")
        return None

    logger.info("No admin user found, creating bootstrap admin account")
    result = create_profile(
        db,
        actor=None,
        email=settings.INITIAL_ADMIN_EMAIL,
        password=settings.INITIAL_ADMIN_PASSWORD,
        full_name="System Administrator",
        roles=[AppRole.ADMIN],
    )
    logger.info("Initial admin created: %s", settings.INITIAL_ADMIN_EMAIL)
    logger.info("Password: [set via INITIAL_ADMIN_PASSWORD environment variable]")
    return result.record
