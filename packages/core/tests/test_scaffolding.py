"""Tests for implicit infrastructure injection."""

import pytest
from infracanvas.graph import Node
from infracanvas.records import Ref
from infracanvas.scaffolding import inject_scaffolding, plan_scaffolding, scaffold_kinds


def _entries(store, provider, nodes):
    return {n.id: store.resolve(provider, n.service_id) for n in nodes}


def _addresses(records):
    return [r.address for r in records]


class TestPlan:
    def test_compute_needs_network_and_access(self, store):
        nodes = [Node(id="web", service_id="ec2")]
        plan = plan_scaffolding("aws", nodes, _entries(store, "aws", nodes))
        assert plan.required == ["vpc", "subnet", "security_group"]
        assert plan.missing == plan.required
        assert plan.existing == {}

    def test_rds_adds_subnet_group(self, store):
        nodes = [Node(id="db", service_id="rds")]
        plan = plan_scaffolding("aws", nodes, _entries(store, "aws", nodes))
        assert plan.required == ["vpc", "subnet", "security_group", "db_subnet_group"]

    def test_lambda_only_needs_role(self, store):
        nodes = [Node(id="fn", service_id="lambda")]
        plan = plan_scaffolding("aws", nodes, _entries(store, "aws", nodes))
        assert plan.required == ["lambda_role"]

    def test_storage_needs_nothing(self, store):
        nodes = [Node(id="b", service_id="s3")]
        plan = plan_scaffolding("aws", nodes, _entries(store, "aws", nodes))
        assert plan.required == []

    def test_user_vpc_is_existing(self, store):
        nodes = [Node(id="net", service_id="vpc"), Node(id="web", service_id="ec2")]
        plan = plan_scaffolding("aws", nodes, _entries(store, "aws", nodes))
        assert plan.existing == {"vpc": "net"}
        assert "vpc" not in plan.missing
        assert ("aws_vpc", "main") not in plan.reserved_names()

    def test_unknown_provider_is_noop(self):
        plan = plan_scaffolding("oracle", [Node(id="x", service_id="vm")], {"x": None})
        assert plan.required == []
        assert scaffold_kinds("oracle") == []

    def test_other_provider_nodes_ignored(self, store):
        nodes = [Node(id="vm", service_id="compute", provider="gcp")]
        plan = plan_scaffolding("aws", nodes, {"vm": store.resolve("gcp", "compute")})
        assert plan.required == []


class TestInjectAws:
    def test_injects_once_for_many_nodes(self, store):
        nodes = [Node(id=f"web{i}", service_id="ec2") for i in range(3)]
        scaffolding = inject_scaffolding("aws", nodes, _entries(store, "aws", nodes))
        assert _addresses(scaffolding.records) == ["aws_vpc.main", "aws_subnet.main", "aws_security_group.default"]

    def test_records_are_marked_injected(self, store):
        nodes = [Node(id="web", service_id="ec2")]
        scaffolding = inject_scaffolding("aws", nodes, _entries(store, "aws", nodes))
        for record in scaffolding.records:
            assert record.injected
            assert record.category == "scaffolding"
            assert record.comment

    def test_subnet_references_vpc(self, store):
        nodes = [Node(id="web", service_id="ec2")]
        scaffolding = inject_scaffolding("aws", nodes, _entries(store, "aws", nodes))
        subnet = next(r for r in scaffolding.records if r.resource_type == "aws_subnet")
        assert subnet.attributes["vpc_id"] == Ref("aws_vpc.main.id")

    def test_scaffolds_are_tagged(self, store):
        nodes = [Node(id="web", service_id="ec2")]
        scaffolding = inject_scaffolding("aws", nodes, _entries(store, "aws", nodes))
        vpc = scaffolding.records[0]
        assert vpc.attributes["tags"]["Environment"] == "terraform-generated"

    def test_reference_lookup(self, store):
        nodes = [Node(id="db", service_id="rds")]
        scaffolding = inject_scaffolding("aws", nodes, _entries(store, "aws", nodes))
        assert scaffolding.reference("db_subnet_group", "name") == Ref("aws_db_subnet_group.main.name")
        assert scaffolding.address("security_group") == "aws_security_group.default"
        assert scaffolding.reference("lambda_role") is None

    def test_lambda_role_policy_is_reference(self, store):
        nodes = [Node(id="fn", service_id="lambda")]
        scaffolding = inject_scaffolding("aws", nodes, _entries(store, "aws", nodes))
        role = scaffolding.records[0]
        assert role.address == "aws_iam_role.lambda_role"
        assert isinstance(role.attributes["assume_role_policy"], Ref)


class TestIdempotence:
    def test_user_vpc_not_duplicated(self, store):
        nodes = [Node(id="net", service_id="vpc", display_name="Core Network"), Node(id="web", service_id="ec2")]
        scaffolding = inject_scaffolding("aws", nodes, _entries(store, "aws", nodes))
        assert "aws_vpc.main" not in _addresses(scaffolding.records)
        assert scaffolding.address("vpc") == "aws_vpc.core_network"
        subnet = next(r for r in scaffolding.records if r.resource_type == "aws_subnet")
        assert subnet.attributes["vpc_id"] == Ref("aws_vpc.core_network.id")

    def test_user_security_group_not_duplicated(self, store):
        nodes = [Node(id="sg", service_id="security_group", display_name="Web SG"), Node(id="web", service_id="ec2")]
        scaffolding = inject_scaffolding("aws", nodes, _entries(store, "aws", nodes))
        assert not [r for r in scaffolding.records if r.resource_type == "aws_security_group"]
        assert scaffolding.address("security_group") == "aws_security_group.web_sg"

    def test_repeat_injection_is_stable(self, store):
        nodes = [Node(id="web", service_id="ec2"), Node(id="db", service_id="rds")]
        entries = _entries(store, "aws", nodes)
        first = inject_scaffolding("aws", nodes, entries)
        second = inject_scaffolding("aws", nodes, entries)
        assert first.records == second.records


class TestInjectOtherProviders:
    def test_azure_resource_group_for_any_node(self, store):
        nodes = [Node(id="b", service_id="blob")]
        scaffolding = inject_scaffolding("azure", nodes, _entries(store, "azure", nodes))
        assert _addresses(scaffolding.records) == ["azurerm_resource_group.main"]
        assert scaffolding.records[0].attributes["location"] == "East US"

    def test_azure_compute_chain(self, store):
        nodes = [Node(id="vm", service_id="vm")]
        scaffolding = inject_scaffolding("azure", nodes, _entries(store, "azure", nodes), region="West Europe")
        assert _addresses(scaffolding.records) == [
            "azurerm_resource_group.main",
            "azurerm_virtual_network.main",
            "azurerm_subnet.main",
            "azurerm_network_interface.main",
        ]
        assert scaffolding.records[0].attributes["location"] == "West Europe"
        assert "tags" not in scaffolding.records[2].attributes

    @pytest.mark.parametrize("service_id", ["compute", "sql"])
    def test_gcp_network(self, store, service_id):
        nodes = [Node(id="n", service_id=service_id)]
        scaffolding = inject_scaffolding("gcp", nodes, _entries(store, "gcp", nodes))
        assert _addresses(scaffolding.records) == ["google_compute_network.main"]
        assert scaffolding.records[0].attributes["auto_create_subnetworks"] is True

    def test_gcp_storage_needs_nothing(self, store):
        nodes = [Node(id="b", service_id="storage")]
        assert inject_scaffolding("gcp", nodes, _entries(store, "gcp", nodes)).records == []
