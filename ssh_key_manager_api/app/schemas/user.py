"""
Pydantic models for user data.

``User`` is the record kept by the record store and written to the
users backing file.  Field names on disk (and on the wire) are the
camelCase aliases; Python code uses the snake_case attribute names.
Both spellings are accepted on input.  Stored records carry every
field and nothing else, so a file written under another schema fails
to load instead of being silently rewritten without its data.

The request schemas at the bottom carry exactly one concern each so
that endpoints stay trivial.
"""

from typing import List

from pydantic import BaseModel, Field


class SshKey(BaseModel):
    """One public key owned by a user.

    The fingerprint is derived from ``public_key`` when the key is added
    and must be unique within the owning user's key list.  The store
    itself treats all three values as opaque strings.
    """

    comment: str = Field(..., examples=["alice@laptop"])
    fingerprint: str = Field(..., examples=["SHA256:nThbg6kXUpJWGl7E1IGOCspRomTxdCARLviKw6E5SY8"])
    public_key: str = Field(..., alias="publicKey", examples=["ssh-ed25519 AAAAC3Nz... alice@laptop"])

    model_config = {
        "populate_by_name": True,
        "extra": "forbid",
    }


class User(BaseModel):
    """A person whose keys may be installed on servers."""

    id: int
    is_system_admin: bool = Field(..., alias="isSystemAdmin")
    is_active: bool = Field(..., alias="isActive")
    name: str = Field(..., min_length=1, examples=["Alice"])
    ssh_keys: List[SshKey] = Field(..., alias="sshKeys")

    model_config = {
        "populate_by_name": True,
        "extra": "forbid",
    }


class UserCreate(BaseModel):
    """Schema for creating a user.  The id is assigned by the store."""

    name: str = Field(..., min_length=1, examples=["Alice"])
    is_system_admin: bool = Field(False, alias="isSystemAdmin")
    is_active: bool = Field(True, alias="isActive")

    model_config = {
        "populate_by_name": True,
    }


class UserNameUpdate(BaseModel):
    name: str = Field(..., min_length=1)


class UserActiveUpdate(BaseModel):
    is_active: bool = Field(..., alias="isActive")

    model_config = {
        "populate_by_name": True,
    }


class SshKeyCreate(BaseModel):
    """Schema for adding a key; comment and fingerprint are derived."""

    public_key: str = Field(..., alias="publicKey", min_length=1)

    model_config = {
        "populate_by_name": True,
    }
