"""
FastAPI Dependencies for Authentication and Authorization.

Key patterns:
1. get_current_user: Extracts and validates JWT, returns User object
2. require_role: Gates admin-only routes on the caller's role
3. scope_to_owner: The single place that decides which rows a caller may see
4. Owner-scoped mutations: update/delete carry the ownership predicate in the
   statement itself, so the check and the write are one operation

Security model:
- JWT stored in HttpOnly cookie or Authorization header
- ADMIN callers see every row, USER callers only rows they created
- Rows the caller may not see are reported as not found (404), never 403
"""

from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from typing import Annotated, Any
from uuid import UUID

from fastapi import Cookie, Depends, Header, HTTPException, status
from jose import JWTError, jwt
from sqlalchemy import Select, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from estatedesk.config import get_settings
from estatedesk.db.models import Contact, User, UserRole
from estatedesk.db.session import get_db
from estatedesk.errors import ForbiddenError, NotFoundError

settings = get_settings()


# =============================================================================
# JWT UTILITIES
# =============================================================================


def create_access_token(user_id: UUID) -> str:
    """
    Create a JWT access token for a user.

    Token payload contains:
    - sub: user_id as string (standard JWT subject claim)
    - exp: expiration timestamp
    """
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expire_minutes)
    payload = {
        "sub": str(user_id),
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> UUID | None:
    """
    Decode and validate a JWT access token.

    Returns user_id if valid, None if invalid/expired.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        user_id_str = payload.get("sub")
        if user_id_str is None:
            return None
        return UUID(user_id_str)
    except (JWTError, ValueError):
        return None


# =============================================================================
# AUTHENTICATION DEPENDENCIES
# =============================================================================


async def get_token_from_request(
    authorization: Annotated[str | None, Header()] = None,
    access_token: Annotated[str | None, Cookie()] = None,
) -> str:
    """
    Extract JWT token from request.

    Supports two methods (in order of preference):
    1. HttpOnly cookie named 'access_token'
    2. Authorization header: 'Bearer <token>'
    """
    if access_token:
        return access_token

    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    token: Annotated[str, Depends(get_token_from_request)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """
    Validate JWT and return the current authenticated user.

    Raises 401 if:
    - Token is missing, invalid, or expired
    - User no longer exists in database
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    user_id = decode_access_token(token)
    if user_id is None:
        raise credentials_exception

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise credentials_exception

    return user


def require_role(*roles: UserRole):
    """
    Build a dependency that only lets the given roles through.

        @router.get("/", dependencies=[Depends(require_role(UserRole.ADMIN))])
    """

    async def _check_role(user: Annotated[User, Depends(get_current_user)]) -> User:
        if user.role not in roles:
            raise ForbiddenError("You do not have permission to perform this action")
        return user

    return _check_role


# Type alias for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_role(UserRole.ADMIN))]
DbSession = Annotated[AsyncSession, Depends(get_db)]


# =============================================================================
# QUERY HELPERS (enforce user scoping at query level)
# =============================================================================


def scope_to_owner(stmt: Select, model: type, caller: User, owner_field: str = "created_by") -> Select:
    """
    Restrict a select to the rows the caller may see.

    ADMIN callers get the statement back unchanged; everyone else gets
    `<owner_field> = caller.id` ANDed in.
    """
    if caller.role == UserRole.ADMIN:
        return stmt
    return stmt.where(getattr(model, owner_field) == caller.id)


async def get_scoped_resource_or_404(
    db: AsyncSession,
    model: type,
    resource_id: UUID,
    caller: User,
    *,
    detail: str = "Resource not found",
):
    """
    Fetch a resource by ID with ownership scoping applied in the WHERE clause.

    Usage:
        calculation = await get_scoped_resource_or_404(
            db, InvestmentCalculation, calculation_id, current_user
        )
    """
    stmt = scope_to_owner(select(model).where(model.id == resource_id), model, caller)
    result = await db.execute(stmt.execution_options(populate_existing=True))
    resource = result.scalar_one_or_none()

    if resource is None:
        raise NotFoundError(detail)

    return resource


async def get_resource_or_404(
    db: AsyncSession,
    model: type,
    resource_id: UUID,
    *,
    detail: str = "Resource not found",
):
    """Fetch an unowned resource (video feedback) by ID."""
    result = await db.execute(
        select(model).where(model.id == resource_id).execution_options(populate_existing=True)
    )
    resource = result.scalar_one_or_none()
    if resource is None:
        raise NotFoundError(detail)
    return resource


async def ensure_contact_owned(db: AsyncSession, contact_id: UUID, user_id: UUID) -> Contact:
    """Verify a referenced contact exists and was created by the user."""
    result = await db.execute(
        select(Contact).where(Contact.id == contact_id, Contact.created_by == user_id)
    )
    contact = result.scalar_one_or_none()
    if contact is None:
        raise NotFoundError("Contact not found or access denied")
    return contact


async def update_owned_or_404(
    db: AsyncSession,
    model: type,
    resource_id: UUID,
    owner_id: UUID,
    values: dict[str, Any],
    *,
    detail: str = "Resource not found",
    owner_field: str = "created_by",
) -> None:
    """
    Apply `values` to the row only if it exists and belongs to owner_id.

    The ownership predicate is part of the UPDATE, so a concurrent delete or
    ownership change cannot slip in between a check and the write.
    """
    stmt = (
        update(model)
        .where(model.id == resource_id, getattr(model, owner_field) == owner_id)
        .values(**values)
    )
    if not values:
        # Nothing to write; still confirm the row is visible to the owner
        stmt = stmt.values(updated_at=model.updated_at)
    result = await db.execute(stmt)
    if result.rowcount == 0:
        raise NotFoundError(detail)


async def delete_owned(
    db: AsyncSession,
    model: type,
    resource_id: UUID,
    owner_id: UUID,
    *,
    extra_conditions: Sequence[Any] = (),
    owner_field: str = "created_by",
) -> bool:
    """
    Delete the row if it exists, belongs to owner_id and meets extra_conditions.

    Returns whether a row was deleted.
    """
    stmt = delete(model).where(
        model.id == resource_id,
        getattr(model, owner_field) == owner_id,
        *extra_conditions,
    )
    result = await db.execute(stmt)
    return result.rowcount > 0


async def delete_owned_or_404(
    db: AsyncSession,
    model: type,
    resource_id: UUID,
    owner_id: UUID,
    *,
    detail: str = "Resource not found",
) -> None:
    if not await delete_owned(db, model, resource_id, owner_id):
        raise NotFoundError(detail)
