import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from toptens.config import SECRET_KEY, ALGORITHM
from toptens.db_depends import get_async_db
from toptens.exceptions import Unauthorized
from toptens.models import UserModel


logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class JWTManager:
    """
    Verifies bearer tokens issued by the session provider.

    Tokens are HS256 JWTs carrying the user id in ``id`` (or a numeric ``sub``).
    Issuing them is the provider's job, this service only reads them.
    """

    def __init__(self, secret_key : str, algorithm : str):
        self.secret_key = secret_key
        self.algorithm = algorithm

    def decode_token(self, token : str) -> int:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as exc:
            raise Unauthorized("Invalid or expired token") from exc
        user_id = payload.get("id", payload.get("sub"))
        try:
            return int(user_id)
        except (TypeError, ValueError) as exc:
            raise Unauthorized("Token has no user id") from exc

    async def _load_user(self, user_id : int, db : AsyncSession) -> UserModel | None:
        return await db.scalar(
            select(UserModel)
            .where(UserModel.id == user_id, UserModel.is_active == True)
        )

    async def get_current_user(
        self,
        credentials : HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
        db : AsyncSession = Depends(get_async_db),
    ) -> UserModel:
        if credentials is None:
            raise Unauthorized()
        user = await self._load_user(self.decode_token(credentials.credentials), db)
        if user is None:
            raise Unauthorized("User does not exist or is not active")
        return user

    async def get_optional_user(
        self,
        credentials : HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
        db : AsyncSession = Depends(get_async_db),
    ) -> UserModel | None:
        if credentials is None:
            return None
        try:
            user_id = self.decode_token(credentials.credentials)
        except Unauthorized:
            logger.debug("Ignoring invalid bearer token on an anonymous endpoint")
            return None
        return await self._load_user(user_id, db)


jwt_manager = JWTManager(secret_key=SECRET_KEY, algorithm=ALGORITHM)
