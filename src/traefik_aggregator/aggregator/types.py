"""Wire and document models.

Upstream records are decoded from the Traefik API JSON; the aggregated
document is rendered back into Traefik's dynamic-configuration shape:

    {"http": {"routers": {...}, "services": {...}, "middlewares": {...}}}

Field aliases carry Traefik's camelCase names; Python attributes stay
snake_case.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

_WIRE = ConfigDict(populate_by_name=True, extra="ignore")


@dataclass
class TLSDomain:
    """A certificate domain entry: one primary name plus alternates."""

    main: str
    sans: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"main": self.main}
        if self.sans:
            data["sans"] = list(self.sans)
        return data


class TraefikRouter(BaseModel):
    """A router record as returned by ``/api/http/routers``."""

    model_config = _WIRE

    name: str = ""
    entry_points: list[str] = Field(default_factory=list, alias="entryPoints")
    service: str = ""
    rule: str = ""
    tls: dict[str, Any] | None = None

    @field_validator("entry_points", mode="before")
    @classmethod
    def none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class HTTPRouter(BaseModel):
    """A router in the aggregated document."""

    model_config = _WIRE

    rule: str = ""
    service: str = ""
    entry_points: list[str] = Field(default_factory=list, alias="entryPoints")
    middlewares: list[str] = Field(default_factory=list)
    tls: dict[str, Any] | None = None

    @field_validator("entry_points", "middlewares", mode="before")
    @classmethod
    def none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "rule": self.rule,
            "service": self.service,
            "entryPoints": list(self.entry_points),
        }
        if self.middlewares:
            data["middlewares"] = list(self.middlewares)
        if self.tls:
            data["tls"] = self.tls
        return data


class Server(BaseModel):
    """A backend server address."""

    model_config = _WIRE

    url: str = ""


class LoadBalancer(BaseModel):
    model_config = _WIRE

    servers_transport: str = Field(default="", alias="serversTransport")
    servers: list[Server] = Field(default_factory=list)

    @field_validator("servers", mode="before")
    @classmethod
    def none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class HTTPService(BaseModel):
    """A service (backend group) in the aggregated document."""

    model_config = _WIRE

    load_balancer: LoadBalancer = Field(default_factory=LoadBalancer, alias="loadBalancer")

    def to_dict(self) -> dict[str, Any]:
        load_balancer: dict[str, Any] = {}
        if self.load_balancer.servers_transport:
            load_balancer["serversTransport"] = self.load_balancer.servers_transport
        load_balancer["servers"] = [{"url": s.url} for s in self.load_balancer.servers]
        return {"loadBalancer": load_balancer}


class HTTPBlock(BaseModel):
    model_config = _WIRE

    routers: dict[str, HTTPRouter] = Field(default_factory=dict)
    services: dict[str, HTTPService] = Field(default_factory=dict)
    middlewares: dict[str, Any] = Field(default_factory=dict)

    @field_validator("routers", "services", "middlewares", mode="before")
    @classmethod
    def none_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class HTTPProxyConfig(BaseModel):
    """A complete dynamic-configuration document.

    Used both for passthrough sources (decoded as-is from the upstream) and
    for the aggregated result served to the consumer.
    """

    model_config = _WIRE

    http: HTTPBlock = Field(default_factory=HTTPBlock)

    def to_dict(self) -> dict[str, Any]:
        """Render the document in Traefik's JSON shape."""
        block: dict[str, Any] = {
            "routers": {name: r.to_dict() for name, r in self.http.routers.items()},
            "services": {name: s.to_dict() for name, s in self.http.services.items()},
        }
        if self.http.middlewares:
            block["middlewares"] = dict(self.http.middlewares)
        return {"http": block}

    def counts(self) -> tuple[int, int, int]:
        """Return (routers, services, middlewares) counts."""
        return (
            len(self.http.routers),
            len(self.http.services),
            len(self.http.middlewares),
        )


AggregatedDocument = HTTPProxyConfig
