import jwt


class TokenClient:
    """Verifies access tokens issued by the Supabase identity provider."""

    def __init__(self, secret_key: str, audience: str = "authenticated", leeway_seconds: int = 10):
        self.secret_key = secret_key
        self.audience = audience
        # Allow small clock skew when decoding tokens
        self.leeway_seconds = leeway_seconds

    def decode_token(self, token: str) -> dict:
        """Decode and verify a token"""
        try:
            return jwt.decode(
                token,
                self.secret_key,
                algorithms=["HS256"],
                audience=self.audience,
                leeway=self.leeway_seconds,
            )
        except jwt.ExpiredSignatureError:
            raise ValueError("Token has expired")
        except jwt.InvalidTokenError:
            raise ValueError("Invalid token")
