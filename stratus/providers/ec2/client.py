"""Typed EC2 Query API client.

Every operation takes the target region as its first argument and is sent to
that region's endpoint. Results are futures; block with ``.result()`` or
attach continuations.

Example:
    >>> api = EC2Api(dispatcher, "https://ec2.{region}.amazonaws.com")
    >>> api.describe_key_pairs("eu-west-1", ["stratus#web"]).result()
    (KeyPair(region='eu-west-1', key_name='stratus#web', ...),)
"""

from __future__ import annotations

import base64
from collections.abc import Iterable
from dataclasses import replace

from stratus.rest import (
    AsyncClient,
    Operation,
    RequestBuilder,
    return_empty_on_not_found,
    return_on_codes,
    return_true_on_not_found,
)
from stratus.rest.builders import FormFields, form_request, numbered
from stratus.rest.request import Invocation, Request

from .config import DEFAULT_ENDPOINT
from .options import LaunchParameters
from .types import KeyPair, PlacementGroup, Reservation, SecurityGroup
from .xml import (
    parse_group_id,
    parse_key_pair,
    parse_key_pairs,
    parse_placement_groups,
    parse_reservation,
    parse_return,
    parse_security_groups,
    translate_error,
)

API_VERSION = "2016-11-15"


def region_from_invocation(request: Request) -> str | None:
    """Signing region of a request built by ``EC2Api``."""
    if request.invocation is None:
        return None
    return request.invocation.arg(0, "region", None)


def ec2_request(
    action: str, fields: FormFields | None = None, idempotent: bool = True
) -> RequestBuilder:
    """Form request for ``action`` sent to the endpoint of the invocation's region."""
    build = form_request(action, API_VERSION, fields, idempotent)

    def build_regional(invocation: Invocation) -> Request:
        request = build(invocation)
        region = invocation.arg(0, "region")
        return replace(request, endpoint=request.endpoint.format(region=region))

    build_regional.__name__ = build.__name__
    return build_regional


# ─── Form fields ─────────────────────────────────────────────────────


def _names(prefix: str, index: int = 1) -> FormFields:
    def fields(invocation: Invocation) -> Iterable[tuple[str, str]]:
        return numbered(prefix, invocation.arg(index, "names", ()))

    return fields


def _key_pair_fields(invocation: Invocation) -> Iterable[tuple[str, str]]:
    yield "KeyName", invocation.arg(1, "key_name")


def _import_key_pair_fields(invocation: Invocation) -> Iterable[tuple[str, str]]:
    public_key: str = invocation.arg(2, "public_key")
    yield "KeyName", invocation.arg(1, "key_name")
    yield "PublicKeyMaterial", base64.b64encode(public_key.encode()).decode("ascii")


def _create_security_group_fields(invocation: Invocation) -> Iterable[tuple[str, str]]:
    yield "GroupName", invocation.arg(1, "name")
    yield "GroupDescription", invocation.arg(2, "description")
    vpc_id = invocation.arg(3, "vpc_id", None)
    if vpc_id:
        yield "VpcId", vpc_id


def _authorize_ingress_fields(invocation: Invocation) -> Iterable[tuple[str, str]]:
    prefix = "IpPermissions.1"
    yield "GroupName", invocation.arg(1, "group_name")
    yield f"{prefix}.IpProtocol", invocation.arg(2, "ip_protocol")
    from_port = invocation.arg(3, "from_port", None)
    to_port = invocation.arg(4, "to_port", None)
    if from_port is not None:
        yield f"{prefix}.FromPort", str(from_port)
    if to_port is not None:
        yield f"{prefix}.ToPort", str(to_port)
    cidr_ip = invocation.arg(5, "cidr_ip", None)
    source_group = invocation.arg(6, "source_group", None)
    if cidr_ip:
        yield f"{prefix}.IpRanges.1.CidrIp", cidr_ip
    if source_group:
        yield f"{prefix}.Groups.1.GroupName", source_group


def _group_name_fields(invocation: Invocation) -> Iterable[tuple[str, str]]:
    yield "GroupName", invocation.arg(1, "name")


def _create_placement_group_fields(invocation: Invocation) -> Iterable[tuple[str, str]]:
    yield "GroupName", invocation.arg(1, "name")
    yield "Strategy", invocation.arg(2, "strategy", "cluster")


def _run_instances_fields(invocation: Invocation) -> Iterable[tuple[str, str]]:
    params: LaunchParameters = invocation.arg(4, "params")
    yield "ImageId", invocation.arg(1, "image_id")
    yield "MinCount", str(invocation.arg(2, "min_count"))
    yield "MaxCount", str(invocation.arg(3, "max_count"))
    yield from params.form_parameters()


# ─── Client ──────────────────────────────────────────────────────────


class EC2Api(AsyncClient):
    """EC2 key pair, security group, placement group and instance operations.

    Describe operations return ``()`` when the resource does not exist;
    delete operations return ``True``.
    """

    error_handler = translate_error

    create_key_pair: Operation[KeyPair] = Operation(
        ec2_request("CreateKeyPair", _key_pair_fields, idempotent=False), parse_key_pair,
    )
    import_key_pair: Operation[KeyPair] = Operation(
        ec2_request("ImportKeyPair", _import_key_pair_fields), parse_key_pair,
    )
    describe_key_pairs: Operation[tuple[KeyPair, ...]] = Operation(
        ec2_request("DescribeKeyPairs", _names("KeyName")),
        parse_key_pairs,
        return_empty_on_not_found,
    )
    delete_key_pair: Operation[bool] = Operation(
        ec2_request("DeleteKeyPair", _key_pair_fields), parse_return, return_true_on_not_found,
    )

    create_security_group: Operation[str] = Operation(
        ec2_request("CreateSecurityGroup", _create_security_group_fields), parse_group_id,
    )
    authorize_ingress: Operation[bool] = Operation(
        ec2_request("AuthorizeSecurityGroupIngress", _authorize_ingress_fields),
        parse_return,
        return_on_codes(True, "InvalidPermission.Duplicate"),
    )
    describe_security_groups: Operation[tuple[SecurityGroup, ...]] = Operation(
        ec2_request("DescribeSecurityGroups", _names("GroupName")),
        parse_security_groups,
        return_empty_on_not_found,
    )
    delete_security_group: Operation[bool] = Operation(
        ec2_request("DeleteSecurityGroup", _group_name_fields),
        parse_return,
        return_true_on_not_found,
    )

    create_placement_group: Operation[bool] = Operation(
        ec2_request("CreatePlacementGroup", _create_placement_group_fields), parse_return,
    )
    describe_placement_groups: Operation[tuple[PlacementGroup, ...]] = Operation(
        ec2_request("DescribePlacementGroups", _names("GroupName")),
        parse_placement_groups,
        return_empty_on_not_found,
    )
    delete_placement_group: Operation[bool] = Operation(
        ec2_request("DeletePlacementGroup", _group_name_fields),
        parse_return,
        return_true_on_not_found,
    )

    run_instances: Operation[Reservation] = Operation(
        ec2_request("RunInstances", _run_instances_fields, idempotent=False), parse_reservation,
    )


__all__ = ["API_VERSION", "DEFAULT_ENDPOINT", "EC2Api", "ec2_request", "region_from_invocation"]
