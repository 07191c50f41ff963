from dataclasses import dataclass


@dataclass(frozen=True, kw_only=True)
class ServiceTemplate:
    name: str
    image: str
    template: str | None = None


@dataclass(frozen=True, kw_only=True)
class RenderedService:
    name: str
    image: str
    content: str
