from __future__ import annotations

import base64

import pytest

from stratus.errors import EC2Error, HttpResponseError
from stratus.infra.loop import EventLoopThread
from stratus.providers.ec2.client import API_VERSION, EC2Api, region_from_invocation
from stratus.providers.ec2.options import RunInstancesOptions
from stratus.providers.ec2.types import KeyPair, Reservation
from stratus.rest import Dispatcher, RequestExecutor

pytestmark = [pytest.mark.unit, pytest.mark.xdist_group("unit")]

REGION = "eu-west-1"


# ─── Requests ────────────────────────────────────────────────────────


class TestRequests:
    def test_regional_endpoint_and_version(self, ec2_api: EC2Api, fake_ec2):
        ec2_api.describe_key_pairs(REGION, []).result(timeout=5)

        [request] = fake_ec2.requests
        assert request.method == "POST"
        assert request.url == f"https://ec2.{REGION}.amazonaws.com/"
        assert request.form[:2] == (("Action", "DescribeKeyPairs"), ("Version", API_VERSION))
        assert region_from_invocation(request) == REGION

    def test_fixed_endpoint_ignores_region(self, fake_ec2, loop: EventLoopThread):
        api = EC2Api(Dispatcher(RequestExecutor(fake_ec2, loop)), "http://localhost:5000")
        api.describe_key_pairs("ap-south-1", []).result(timeout=5)
        assert fake_ec2.requests[0].url == "http://localhost:5000/"

    def test_import_key_pair_encodes_public_key(self, ec2_api: EC2Api, fake_ec2):
        ec2_api.import_key_pair(REGION, "stratus#web", "ssh-rsa AAAA").result(timeout=5)

        [form] = fake_ec2.forms("ImportKeyPair")
        assert form["KeyName"] == "stratus#web"
        assert base64.b64decode(form["PublicKeyMaterial"]) == b"ssh-rsa AAAA"

    def test_create_security_group_with_vpc(self, ec2_api: EC2Api, fake_ec2):
        group_id = ec2_api.create_security_group(REGION, "web", "web servers", "vpc-1").result(timeout=5)

        assert group_id == "sg-0001"
        [form] = fake_ec2.forms("CreateSecurityGroup")
        assert form["GroupName"] == "web"
        assert form["GroupDescription"] == "web servers"
        assert form["VpcId"] == "vpc-1"

    def test_create_security_group_without_vpc(self, ec2_api: EC2Api, fake_ec2):
        ec2_api.create_security_group(REGION, "web", "web").result(timeout=5)
        assert "VpcId" not in fake_ec2.forms("CreateSecurityGroup")[0]

    def test_authorize_ingress_fields(self, ec2_api: EC2Api, fake_ec2):
        ec2_api.create_security_group(REGION, "web", "web").result(timeout=5)
        ec2_api.authorize_ingress(REGION, "web", "tcp", 22, 22, "0.0.0.0/0").result(timeout=5)
        ec2_api.authorize_ingress(REGION, "web", "udp", 1, 65535, None, "web").result(timeout=5)

        cidr, self_rule = fake_ec2.forms("AuthorizeSecurityGroupIngress")
        assert cidr["IpPermissions.1.IpProtocol"] == "tcp"
        assert cidr["IpPermissions.1.FromPort"] == "22"
        assert cidr["IpPermissions.1.ToPort"] == "22"
        assert cidr["IpPermissions.1.IpRanges.1.CidrIp"] == "0.0.0.0/0"
        assert "IpPermissions.1.Groups.1.GroupName" not in cidr
        assert self_rule["IpPermissions.1.Groups.1.GroupName"] == "web"
        assert "IpPermissions.1.IpRanges.1.CidrIp" not in self_rule

    def test_run_instances_fields(self, ec2_api: EC2Api, fake_ec2):
        params = RunInstancesOptions.as_type("m5.large").with_key_name("k").build()

        reservation = ec2_api.run_instances(REGION, "ami-1", 2, 2, params).result(timeout=5)

        assert reservation == Reservation("r-0001", ("i-00000001", "i-00000002"))
        [form] = fake_ec2.forms("RunInstances")
        assert list(form)[2:] == ["ImageId", "MinCount", "MaxCount", "InstanceType", "KeyName"]
        assert form["MinCount"] == form["MaxCount"] == "2"

    def test_only_creating_key_pairs_and_instances_is_not_idempotent(self, ec2_api: EC2Api, fake_ec2):
        ec2_api.create_key_pair(REGION, "k").result(timeout=5)
        ec2_api.describe_key_pairs(REGION, ["k"]).result(timeout=5)
        ec2_api.create_security_group(REGION, "web", "web").result(timeout=5)
        ec2_api.run_instances(REGION, "ami-1", 1, 1, RunInstancesOptions.as_type("m5.large").build()).result(timeout=5)

        flags = {dict(r.form)["Action"]: r.idempotent for r in fake_ec2.requests}
        assert flags == {
            "CreateKeyPair": False,
            "DescribeKeyPairs": True,
            "CreateSecurityGroup": True,
            "RunInstances": False,
        }


# ─── Results ─────────────────────────────────────────────────────────


class TestResults:
    def test_create_key_pair_returns_private_key(self, ec2_api: EC2Api):
        pair = ec2_api.create_key_pair(REGION, "stratus#web#abc").result(timeout=5)

        assert pair.region == REGION
        assert pair.key_name == "stratus#web#abc"
        assert pair.fingerprint == "1f:51:ae"
        assert pair.key_material is not None

    def test_describe_key_pairs(self, ec2_api: EC2Api):
        ec2_api.create_key_pair(REGION, "a").result(timeout=5)

        assert ec2_api.describe_key_pairs(REGION, ["a"]).result(timeout=5) == (
            KeyPair(REGION, "a", "1f:51:ae"),
        )

    def test_describe_not_found_is_empty(self, ec2_api: EC2Api):
        assert ec2_api.describe_key_pairs(REGION, ["ghost"]).result(timeout=5) == ()
        assert ec2_api.describe_security_groups(REGION, ["ghost"]).result(timeout=5) == ()
        assert ec2_api.describe_placement_groups(REGION, ["ghost"]).result(timeout=5) == ()

    def test_delete_not_found_is_true(self, ec2_api: EC2Api):
        assert ec2_api.delete_key_pair(REGION, "ghost").result(timeout=5) is True
        assert ec2_api.delete_security_group(REGION, "ghost").result(timeout=5) is True
        assert ec2_api.delete_placement_group(REGION, "ghost").result(timeout=5) is True

    def test_duplicate_permission_is_true(self, ec2_api: EC2Api):
        ec2_api.create_security_group(REGION, "web", "web").result(timeout=5)
        ec2_api.authorize_ingress(REGION, "web", "tcp", 22, 22, "0.0.0.0/0").result(timeout=5)

        again = ec2_api.authorize_ingress(REGION, "web", "tcp", 22, 22, "0.0.0.0/0")
        assert again.result(timeout=5) is True

    def test_resources_are_per_region(self, ec2_api: EC2Api):
        ec2_api.create_placement_group("us-east-1", "pg").result(timeout=5)

        assert ec2_api.describe_placement_groups("us-east-1", ["pg"]).result(timeout=5)[0].state == "available"
        assert ec2_api.describe_placement_groups("us-west-2", ["pg"]).result(timeout=5) == ()


# ─── Errors ──────────────────────────────────────────────────────────


class TestErrors:
    def test_error_document_becomes_ec2_error(self, ec2_api: EC2Api):
        ec2_api.create_key_pair(REGION, "dup").result(timeout=5)

        with pytest.raises(EC2Error) as exc_info:
            ec2_api.create_key_pair(REGION, "dup").result(timeout=5)

        assert exc_info.value.code == "InvalidKeyPair.Duplicate"
        assert exc_info.value.status == 400
        assert isinstance(exc_info.value.__cause__, HttpResponseError)

    def test_unrelated_codes_are_not_recovered(self, ec2_api: EC2Api, fake_ec2):
        fake_ec2.fail["DescribeSecurityGroups"] = "UnauthorizedOperation"

        with pytest.raises(EC2Error, match="UnauthorizedOperation"):
            ec2_api.describe_security_groups(REGION, ["web"]).result(timeout=5)

    def test_missing_region_fails_without_network(self, ec2_api: EC2Api, fake_ec2):
        future = ec2_api.describe_key_pairs()

        with pytest.raises(TypeError, match="region"):
            future.result(timeout=5)
        assert fake_ec2.requests == []
