import argparse
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from lootlab.load_secrets import jwt_algorithm, jwt_audience, jwt_secret

security = HTTPBearer(auto_error=False)


class BearerAuthentication:
    def __init__(
        self,
        secret: str = jwt_secret,
        algorithm: str = jwt_algorithm,
        audience: str | None = jwt_audience,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.audience = audience

    def resolve_account_id(self, token: str) -> UUID | None:
        """Decode a bearer token and return the account it was issued for

        Args:
            token (str): Raw JWT from the Authorization header

        Returns:
            UUID | None: The ``sub`` claim, None if the token is invalid
        """
        if not self.secret:
            logging.error("JWT_SECRET is not configured")
            return None
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                options={"verify_aud": self.audience is not None},
            )
            return UUID(str(payload.get("sub")))
        except (JWTError, ValueError) as e:
            logging.info(f"Rejected bearer token: {e}")
            return None

    async def check_bearer_token(
        self, credentials: HTTPAuthorizationCredentials | None = Depends(security)
    ) -> UUID:
        """Resolve the caller's account id. This is the only identity the core trusts.

        Raises:
            HTTPException: No bearer credential, or it does not verify
        """
        account_id = None
        if credentials is not None and credentials.scheme.lower() == "bearer":
            account_id = self.resolve_account_id(credentials.credentials)
        if account_id is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Unauthorized",
                headers={"WWW-Authenticate": "Bearer"},
            )
        return account_id

    def create_token(self, account_id: UUID, expires_in: timedelta = timedelta(hours=1)) -> str:
        claims = {
            "sub": str(account_id),
            "exp": datetime.now(timezone.utc) + expires_in,
        }
        if self.audience is not None:
            claims["aud"] = self.audience
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)


bearer_auth = BearerAuthentication()


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Create a development account and print a bearer token for it"
    )
    parser.add_argument("--account-id", type=UUID, help="Account id (uuid)", required=True)
    parser.add_argument("--balance", type=Decimal, help="Opening balance", default=Decimal("1000"))
    parser.add_argument("--hours", type=int, help="Token lifetime in hours", default=24)
    return parser


async def main(account_id: UUID, balance: Decimal, hours: int):
    from lootlab.crud import CreateData
    from lootlab.db import Session, create_table
    from lootlab.models.schema_models import AccountSchema

    await create_table()
    async with Session() as session:
        async with session.begin():
            await CreateData.add_account(
                AccountSchema(account_id=account_id, balance=balance), session
            )
    print(account_id, balance)
    print(bearer_auth.create_token(account_id, timedelta(hours=hours)))


if __name__ == "__main__":
    parser = get_parser()
    args = parser.parse_args()
    asyncio.run(main(args.account_id, args.balance, args.hours))
