"""External reporting sink configuration."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, ValidationError


class MalformedSinkConfigError(ValueError):
    """Raised when the external sink configuration cannot be used."""


class SinkConfig(BaseModel):
    """Where and how to deliver reports to the external HTTP sink.

    ``name`` identifies the report stream on the provider side and is
    appended to ``endpoint`` as the final path segment.
    """

    model_config = ConfigDict(frozen=True)

    endpoint: HttpUrl
    name: str = Field(min_length=1, pattern=r"^[A-Za-z0-9._~-]+$")
    token: str | None = None
    timeout_seconds: float = Field(10.0, gt=0)

    @property
    def url(self) -> str:
        return f"{str(self.endpoint).rstrip('/')}/{self.name}"

    @classmethod
    def build(
        cls,
        endpoint: str,
        name: str,
        token: str | None = None,
        timeout_seconds: float = 10.0,
    ) -> SinkConfig:
        """Validate raw settings, raising ``MalformedSinkConfigError``."""
        try:
            return cls(
                endpoint=endpoint,
                name=name,
                token=token or None,
                timeout_seconds=timeout_seconds,
            )
        except ValidationError as exc:
            raise MalformedSinkConfigError(
                f"Invalid external sink configuration: {exc}"
            ) from exc
