"""Administrator allow-list schemas."""

from pydantic import BaseModel, Field, field_validator

from tickety.core.security import is_eth_address, normalize_address


class AdminCreateRequest(BaseModel):
    """Request to grant the admin role to a wallet."""

    address: str = Field(..., description="Wallet address to promote")
    note: str | None = Field(None, max_length=500, description="Optional free-form note")

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        """Normalize the address and reject anything that is not 0x + 40 hex."""
        if not is_eth_address(v):
            raise ValueError("Invalid address")
        return normalize_address(v)


class AdminEntryResponse(BaseModel):
    address: str
    note: str | None = None
    source: str = Field(..., description="'config' for static entries, 'database' otherwise")


class AdminListResponse(BaseModel):
    items: list[AdminEntryResponse]


class AdminChangeResponse(BaseModel):
    ok: bool = True
    address: str
