"""Sign-in and session Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field


class NonceResponse(BaseModel):
    """Challenge issued to a wallet before it signs in."""

    nonce: str = Field(..., description="Single-use nonce to embed in the sign-in message")
    expires_in: int = Field(..., description="Seconds until the nonce expires")


class VerifyRequest(BaseModel):
    """Signed sign-in message submitted by the wallet."""

    message: str = Field(..., min_length=1, description="EIP-4361 message text")
    signature: str = Field(..., min_length=1, description="Hex-encoded personal_sign signature")


class SessionResponse(BaseModel):
    """Identity embedded in a verified session."""

    address: str = Field(..., description="Lowercase wallet address")
    roles: list[str] = Field(..., description="Roles granted at sign-in")
    chain_id: int | None = Field(None, alias="chainId", description="Chain the wallet signed on")

    model_config = ConfigDict(populate_by_name=True)


class VerifyResponse(SessionResponse):
    """Successful sign-in: identity plus the session token."""

    token: str = Field(..., description="Session token for the Authorization header")
    token_type: str = Field("bearer", description="Token type (always 'bearer')")


class AssertedIdentityResponse(BaseModel):
    """Identity taken from a client-asserted header, not from a session."""

    address: str
    role: str
    assurance: str = Field("asserted", description="Always 'asserted'; not cryptographically verified")


class LogoutResponse(BaseModel):
    ok: bool = True
