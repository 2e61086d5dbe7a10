"""
ParkShare Backend — Auth Service
==================================

What:  Registration and login. Both return a bearer token plus the public
       user profile.
Who:   Called by parkshare/routes/auth.py.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from parkshare.exceptions import AuthenticationError, DatabaseError, ValidationError
from parkshare.models.user import User
from parkshare.schemas.user import AuthResponse, LoginRequest, RegisterRequest, UserPublic
from parkshare.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL_MESSAGE = "User already exists with this email"


class AuthService:

    async def register(self, db: AsyncSession, payload: RegisterRequest) -> AuthResponse:
        """Create an account. Duplicate email → 400 on `email`."""
        try:
            existing = await db.execute(select(User.id).where(User.email == payload.email))
            if existing.scalar_one_or_none() is not None:
                raise ValidationError(DUPLICATE_EMAIL_MESSAGE, field="email")

            user = User(
                name=payload.name,
                email=payload.email,
                password_hash=hash_password(payload.password),
                phone=payload.phone,
                role=payload.role,
            )
            db.add(user)
            await db.flush()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email.
            raise ValidationError(DUPLICATE_EMAIL_MESSAGE, field="email")
        except SQLAlchemyError as e:
            logger.error("Database error registering user: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})

        logger.info("User %s registered with role %s", user.id, user.role)
        return AuthResponse(
            message="User registered successfully",
            token=create_access_token(user.id, user.role),
            user=UserPublic.model_validate(user),
        )

    async def login(self, db: AsyncSession, payload: LoginRequest) -> AuthResponse:
        """Check credentials. Unknown email and wrong password look the same."""
        try:
            result = await db.execute(select(User).where(User.email == payload.email))
            user = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})

        if user is None or not verify_password(user.password_hash, payload.password):
            logger.info("Failed login attempt for %s", payload.email)
            raise AuthenticationError("Invalid email or password")

        return AuthResponse(
            message="Login successful",
            token=create_access_token(user.id, user.role),
            user=UserPublic.model_validate(user),
        )


auth_service = AuthService()
