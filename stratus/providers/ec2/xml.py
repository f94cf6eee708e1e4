"""EC2 Query API response parsing.

EC2 answers with namespaced XML (``http://ec2.amazonaws.com/doc/<version>/``).
Namespaces are stripped on parse so lookups use bare tag names, which keeps
the parsers independent of the API version.

Errors come back as::

    <Response>
      <Errors><Error><Code>InvalidGroup.NotFound</Code><Message>...</Message></Error></Errors>
      <RequestID>...</RequestID>
    </Response>
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

from stratus.errors import EC2Error, HttpResponseError
from stratus.rest.request import Response

from .types import KeyPair, PlacementGroup, Reservation, SecurityGroup


def _parse(body: bytes | str) -> ET.Element:
    root = ET.fromstring(body)
    for element in root.iter():
        if isinstance(element.tag, str) and "}" in element.tag:
            element.tag = element.tag.rsplit("}", 1)[1]
    return root


def _region(response: Response) -> str:
    request = response.request
    if request is None or request.invocation is None:
        return ""
    return str(request.invocation.arg(0, "region", ""))


def _items(root: ET.Element, container: str) -> list[ET.Element]:
    return root.findall(f"{container}/item")


# =============================================================================
# Response transformers
# =============================================================================


def parse_return(response: Response) -> bool:
    """``<return>true</return>`` acknowledgements."""
    return (_parse(response.body).findtext("return") or "").strip() == "true"


def parse_key_pair(response: Response) -> KeyPair:
    """``CreateKeyPair`` and ``ImportKeyPair`` responses."""
    root = _parse(response.body)
    return KeyPair(
        region=_region(response),
        key_name=root.findtext("keyName", ""),
        fingerprint=root.findtext("keyFingerprint"),
        key_material=root.findtext("keyMaterial"),
    )


def parse_key_pairs(response: Response) -> tuple[KeyPair, ...]:
    region = _region(response)
    return tuple(
        KeyPair(
            region=region,
            key_name=item.findtext("keyName", ""),
            fingerprint=item.findtext("keyFingerprint"),
        )
        for item in _items(_parse(response.body), "keySet")
    )


def parse_group_id(response: Response) -> str:
    return _parse(response.body).findtext("groupId", "")


def parse_security_groups(response: Response) -> tuple[SecurityGroup, ...]:
    region = _region(response)
    return tuple(
        SecurityGroup(
            region=region,
            group_name=item.findtext("groupName", ""),
            group_id=item.findtext("groupId"),
            description=item.findtext("groupDescription", ""),
        )
        for item in _items(_parse(response.body), "securityGroupInfo")
    )


def parse_placement_groups(response: Response) -> tuple[PlacementGroup, ...]:
    region = _region(response)
    return tuple(
        PlacementGroup(
            region=region,
            name=item.findtext("groupName", ""),
            strategy=item.findtext("strategy", "cluster"),
            state=item.findtext("state", "pending"),
        )
        for item in _items(_parse(response.body), "placementGroupSet")
    )


def parse_reservation(response: Response) -> Reservation:
    root = _parse(response.body)
    return Reservation(
        reservation_id=root.findtext("reservationId", ""),
        instance_ids=tuple(
            item.findtext("instanceId", "") for item in _items(root, "instancesSet")
        ),
    )


# =============================================================================
# Errors
# =============================================================================


def translate_error(error: HttpResponseError) -> BaseException:
    """Map an EC2 XML error body to ``EC2Error``.

    Bodies that are not EC2 error documents leave ``error`` as is.
    """
    try:
        root = _parse(error.body)
    except ET.ParseError:
        return error
    first = root.find(".//Errors/Error")
    if first is None:
        first = root.find(".//Error")
    if first is None:
        return error
    code = first.findtext("Code")
    if not code:
        return error
    return EC2Error(code, first.findtext("Message", ""), status=error.status)


__all__ = [
    "parse_group_id",
    "parse_key_pair",
    "parse_key_pairs",
    "parse_placement_groups",
    "parse_reservation",
    "parse_return",
    "parse_security_groups",
    "translate_error",
]
