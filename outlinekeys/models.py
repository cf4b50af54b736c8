from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Optional


class ServerType(Enum):
    STATIC_CONNECTION = "static"
    DYNAMIC_CONNECTION = "dynamic"


@dataclass(frozen=True)
class AccessKeyFields:
    host: str
    port: int
    method: str
    password: str = ""
    tag: str = ""
    extra: Dict[str, str] = field(default_factory=dict)


@dataclass
class ShadowsocksConfig:
    host: str
    port: int
    method: str
    password: str
    name: Optional[str] = None

    def __str__(self):
        return f"[{self.method}] {self.name or ''} ({self.host}:{self.port})"


@dataclass
class SessionConfig:
    host: Optional[str] = None
    port: Optional[int] = None
    method: Optional[str] = None
    password: Optional[str] = None
    prefix: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionConfig":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})
