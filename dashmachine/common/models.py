"""
Pydantic models for platform records and request/response validation.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ConnectionParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    network: str = "testnet"
    mnemonic: str | None = Field(default=None, repr=False)
    apps: dict[str, dict[str, str]] = Field(default_factory=dict)
    seeds: list[str] = Field(default_factory=list)


class IdentityPublicKey(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int = 0
    type: int = 0
    data: str


class Identity(BaseModel):
    """Network-assigned account record."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    public_keys: list[IdentityPublicKey] = Field(
        default_factory=list, alias="publicKeys"
    )

    @property
    def primary_public_key(self) -> str | None:
        if not self.public_keys:
            return None
        return self.public_keys[0].data

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class Document(BaseModel):
    """Document submitted to or retrieved from the platform."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    data_contract_id: str = Field(alias="dataContractId")
    id: str | None = None
    owner_id: str = Field(alias="ownerId")
    data: dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class DocumentQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    where: list[tuple[str, str, Any]] = Field(default_factory=list)
    order_by: list[tuple[str, str]] = Field(default_factory=list)
    limit: int | None = Field(default=None, gt=0)
    start_at: int | None = Field(default=None, ge=1)

    def to_dict(self) -> dict[str, Any]:
        """Return the query in platform wire format."""
        query: dict[str, Any] = {"where": [list(clause) for clause in self.where]}
        if self.order_by:
            query["orderBy"] = [list(order) for order in self.order_by]
        if self.limit is not None:
            query["limit"] = self.limit
        if self.start_at is not None:
            query["startAt"] = self.start_at
        return query


class NameRecord(BaseModel):
    """A registered username resolved to its identity and keys.

    ``private_key`` is only set when the record belongs to the account the
    caller is connected as.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None
    name: str
    identity_id: str
    identity: Identity
    public_key: str
    private_key: str | None = Field(default=None, repr=False)

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True, by_alias=True)


# Devnet gateway request/response bodies


class RegisterIdentityRequest(BaseModel):
    public_keys: list[IdentityPublicKey] = Field(alias="publicKeys", min_length=1)


class QueryDocumentsRequest(BaseModel):
    locator: str
    query: dict[str, Any] = Field(default_factory=dict)


class DocumentBatch(BaseModel):
    create: list[Document] = Field(default_factory=list)
    replace: list[Document] = Field(default_factory=list)
    delete: list[Document] = Field(default_factory=list)


class BroadcastRequest(BaseModel):
    batch: DocumentBatch
    identity_id: str = Field(alias="identityId")


class DocumentsResponse(BaseModel):
    documents: list[dict[str, Any]]
