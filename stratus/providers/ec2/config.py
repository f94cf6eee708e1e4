"""EC2 provider configuration."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_ENDPOINT = "https://ec2.{region}.amazonaws.com"


@dataclass(frozen=True, slots=True)
class EC2:
    """EC2 provider configuration.

    Example:
        >>> from stratus.providers.ec2 import EC2
        >>> config = EC2(region="eu-west-1")

    Args:
        region: Default region for requests. Default: us-east-1
        endpoint: Query API endpoint override (e.g. a local emulator).
            If None, uses ``https://ec2.{region}.amazonaws.com`` with the
            region of each request filled in.
        access_key_id: Explicit access key. If None, uses botocore's default chain.
        secret_access_key: Secret for ``access_key_id``.
        session_token: Optional STS session token.
        prefix: Prefix of generated resource names (``{prefix}#{group}#{region}``).
        auto_create_key_pair: Create a key pair for templates that leave
            ``TemplateOptions.auto_create_key_pair`` unset.
        auto_create_placement_group: Create placement groups for templates
            that leave ``TemplateOptions.auto_create_placement_group`` unset.
    """

    region: str = "us-east-1"
    endpoint: str | None = None
    access_key_id: str | None = None
    secret_access_key: str | None = None
    session_token: str | None = None
    prefix: str = "stratus"
    auto_create_key_pair: bool = True
    auto_create_placement_group: bool = True

    @property
    def type(self) -> str: return "ec2"

    @property
    def endpoint_template(self) -> str:
        """Endpoint for ``EC2Api``; ``{region}`` is replaced per request."""
        return self.endpoint or DEFAULT_ENDPOINT
