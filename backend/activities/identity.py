"""
Identity provider client.

The provider owns credentials and sessions; the rest of the app only sees an
Identity (subject + email) resolved from a bearer token.
"""

import base64
import hashlib
import hmac
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional

import boto3
import requests
from botocore.exceptions import BotoCoreError, ClientError
from jose import jwk, jwt
from jose.utils import base64url_decode

logger = logging.getLogger(__name__)

JWKS_CACHE_DURATION = 3600


class IdentityError(Exception):
    """Provider-side failure; the message is safe to show to the user."""


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: Optional[str] = None


@dataclass(frozen=True)
class Session:
    access_token: str
    expires_in: Optional[int] = None
    refresh_token: Optional[str] = None
    id_token: Optional[str] = None


class IdentityProvider(ABC):
    @abstractmethod
    def get_identity(self, token: str) -> Optional[Identity]:
        """Identity for a valid session token, None for anything else."""

    @abstractmethod
    def sign_in(self, email: str, password: str) -> Session:
        pass

    @abstractmethod
    def sign_up(self, email: str, password: str) -> Identity:
        pass

    @abstractmethod
    def sign_out(self, token: str) -> None:
        pass

    @abstractmethod
    def delete_user(self, user_id: str) -> None:
        pass


class TokenError(Exception):
    pass


class CognitoIdentityProvider(IdentityProvider):
    def __init__(self, region: str, user_pool_id: str, client_id: str, client_secret: Optional[str] = None, client=None):
        self.region = region
        self.user_pool_id = user_pool_id
        self.client_id = client_id
        self.client_secret = client_secret
        self.jwks_url = f"https://cognito-idp.{region}.amazonaws.com/{user_pool_id}/.well-known/jwks.json"
        self.issuer = f"https://cognito-idp.{region}.amazonaws.com/{user_pool_id}"
        self.cognito = client or boto3.client("cognito-idp", region_name=region)
        self._jwks_cache: Optional[Dict] = None
        self._jwks_cache_time: float = 0

    def get_jwks(self) -> Dict:
        """Fetch and cache JWKs from Cognito"""
        current_time = time.time()
        if self._jwks_cache and (current_time - self._jwks_cache_time) < JWKS_CACHE_DURATION:
            return self._jwks_cache

        response = requests.get(self.jwks_url, timeout=10)
        response.raise_for_status()
        self._jwks_cache = response.json()
        self._jwks_cache_time = current_time
        return self._jwks_cache

    def verify_token(self, token: str) -> Dict:
        """
        Verify a Cognito access token.
        Returns the decoded claims if valid, raises TokenError otherwise.
        """
        try:
            headers = jwt.get_unverified_headers(token)
            kid = headers["kid"]

            key = None
            for jwk_key in self.get_jwks()["keys"]:
                if jwk_key["kid"] == kid:
                    key = jwk_key
                    break
            if not key:
                raise TokenError("Public key not found in JWKs")

            public_key = jwk.construct(key)
            message, encoded_signature = token.rsplit(".", 1)
            decoded_signature = base64url_decode(encoded_signature.encode())
            if not public_key.verify(message.encode(), decoded_signature):
                raise TokenError("Invalid token signature")

            claims = jwt.get_unverified_claims(token)
            if time.time() > claims["exp"]:
                raise TokenError("Token has expired")
            if claims.get("iss") != self.issuer:
                raise TokenError("Invalid token issuer")
            if claims.get("token_use") != "access":
                raise TokenError("Invalid token use")
            if claims.get("client_id") != self.client_id:
                raise TokenError("Invalid token client_id")
            return claims

        except jwt.JWTError as e:
            raise TokenError(f"Invalid token: {e}")
        except (KeyError, ValueError) as e:
            raise TokenError(f"Invalid token structure: {e}")
        except requests.RequestException as e:
            raise TokenError(f"Could not fetch signing keys: {e}")

    def get_identity(self, token: str) -> Optional[Identity]:
        try:
            claims = self.verify_token(token)
        except TokenError as e:
            logger.info(f"Rejected session token: {e}")
            return None
        return Identity(user_id=claims["sub"], email=claims.get("email"))

    def _secret_hash(self, username: str) -> Optional[str]:
        if not self.client_secret:
            return None
        digest = hmac.new(
            self.client_secret.encode(), (username + self.client_id).encode(), hashlib.sha256
        ).digest()
        return base64.b64encode(digest).decode()

    def _call(self, operation: str, **params):
        try:
            return getattr(self.cognito, operation)(**params)
        except ClientError as e:
            message = e.response.get("Error", {}).get("Message") or "Authentication failed"
            raise IdentityError(message) from e
        except BotoCoreError as e:
            logger.exception(f"Cognito {operation} failed")
            raise IdentityError("Authentication service unavailable") from e

    def sign_in(self, email: str, password: str) -> Session:
        auth_params = {"USERNAME": email, "PASSWORD": password}
        secret_hash = self._secret_hash(email)
        if secret_hash:
            auth_params["SECRET_HASH"] = secret_hash
        resp = self._call(
            "initiate_auth",
            AuthFlow="USER_PASSWORD_AUTH",
            ClientId=self.client_id,
            AuthParameters=auth_params,
        )
        result = resp.get("AuthenticationResult")
        if not result:
            raise IdentityError(f"Additional sign-in step required: {resp.get('ChallengeName', 'unknown')}")
        return Session(
            access_token=result["AccessToken"],
            expires_in=result.get("ExpiresIn"),
            refresh_token=result.get("RefreshToken"),
            id_token=result.get("IdToken"),
        )

    def sign_up(self, email: str, password: str) -> Identity:
        params = {
            "ClientId": self.client_id,
            "Username": email,
            "Password": password,
            "UserAttributes": [{"Name": "email", "Value": email}],
        }
        secret_hash = self._secret_hash(email)
        if secret_hash:
            params["SecretHash"] = secret_hash
        resp = self._call("sign_up", **params)
        return Identity(user_id=resp["UserSub"], email=email)

    def sign_out(self, token: str) -> None:
        self._call("global_sign_out", AccessToken=token)

    def delete_user(self, user_id: str) -> None:
        self._call("admin_delete_user", UserPoolId=self.user_pool_id, Username=user_id)
