"""Tests for the HCL emitter."""

import pytest
from infracanvas.hcl import (
    GENERATED_HEADER,
    is_reference,
    quote,
    register_reference_pattern,
    render_body,
    render_outputs,
    render_providers,
    render_resource,
    render_resources,
    render_tfvars_example,
    render_value,
    render_variables,
)
from infracanvas.providers import get_profile, provider_settings
from infracanvas.records import Block, OutputRecord, Ref, ResourceRecord, VariableRecord


class TestReferences:
    @pytest.mark.parametrize(
        "text",
        [
            "var.db_password",
            "local.common_tags",
            "module.network.vpc_id",
            "data.aws_ami.ubuntu.id",
            "aws_s3_bucket.logs.arn",
            "aws_instance.web",
            "google_compute_network.main.self_link",
            "azurerm_resource_group.main.name",
            "random_id.suffix.hex",
            "aws_subnet.main[0].id",
        ],
    )
    def test_recognised(self, text):
        assert is_reference(text)

    @pytest.mark.parametrize(
        "text",
        [
            "hello world",
            "us-east-1",
            "t3.micro",
            "ami-0abc",
            "var",
            "data.aws_ami",
            "10.0.0.0/16",
            "",
            "s3.amazonaws.com",
        ],
    )
    def test_not_references(self, text):
        assert not is_reference(text)

    def test_registered_pattern(self):
        assert not is_reference("each.value")
        register_reference_pattern(r"each\.(key|value)")
        assert is_reference("each.value")


class TestQuote:
    def test_plain(self):
        assert quote("hello") == '"hello"'

    def test_escapes_quotes_and_backslashes(self):
        assert quote('say "hi"') == '"say \\"hi\\""'
        assert quote("C:\\dir") == '"C:\\\\dir"'

    def test_escapes_newlines(self):
        assert quote("a\nb") == '"a\\nb"'

    def test_escapes_template_sequences(self):
        assert quote("${oops}") == '"$${oops}"'
        assert quote("%{if}") == '"%%{if}"'

    def test_escapes_other_control_characters(self):
        assert quote("a\x00b\x1bc\x7f") == '"a\\u0000b\\u001bc\\u007f"'


class TestRenderValue:
    def test_literals(self):
        assert render_value("x") == '"x"'
        assert render_value(3) == "3"
        assert render_value(2.5) == "2.5"
        assert render_value(True) == "true"
        assert render_value(False) == "false"

    def test_references_unquoted(self):
        assert render_value(Ref("aws_vpc.main.id")) == "aws_vpc.main.id"
        assert render_value("var.region") == "var.region"

    def test_list(self):
        assert render_value(["a", Ref("aws_subnet.main.id"), 1]) == '["a", aws_subnet.main.id, 1]'
        assert render_value([]) == "[]"

    def test_map(self):
        assert render_value({"Name": "web", "team-owner": "ops", "has space": 1}) == (
            '{\n  Name = "web"\n  team-owner = "ops"\n  "has space" = 1\n}'
        )
        assert render_value({}) == "{}"

    def test_unrenderable_falls_back(self):
        warnings = []
        assert render_value(object, warnings=warnings) == '"object"'
        assert len(warnings) == 1


class TestRenderResource:
    def test_full_resource(self):
        record = ResourceRecord(
            resource_type="aws_s3_bucket",
            resource_name="logs",
            attributes={
                "bucket": "my-logs",
                "force_destroy": False,
                "skipped": None,
                "versioning": Block({"enabled": True}),
                "tags": {"Name": "Logs"},
            },
            dependencies=("aws_iam_role.lambda_role", "aws_iam_role.lambda_role"),
            comment="Log archive",
        )
        assert render_resource(record) == "\n".join(
            [
                "# Log archive",
                'resource "aws_s3_bucket" "logs" {',
                '  bucket = "my-logs"',
                "  force_destroy = false",
                "  versioning {",
                "    enabled = true",
                "  }",
                "  tags = {",
                '    Name = "Logs"',
                "  }",
                "  depends_on = [aws_iam_role.lambda_role, aws_iam_role.lambda_role]",
                "}",
            ]
        )

    def test_no_depends_on_when_empty(self):
        text = render_resource(ResourceRecord("aws_sqs_queue", "q", {"name": "q"}))
        assert "depends_on" not in text

    def test_repeated_blocks(self):
        record = ResourceRecord(
            "aws_security_group",
            "web",
            {"ingress": [Block({"from_port": 80}), Block({"from_port": 443})], "egress": Block()},
        )
        text = render_resource(record)
        assert text.count("  ingress {") == 2
        assert "  egress {}" in text

    def test_block_keys_turn_dicts_into_blocks(self):
        record = ResourceRecord("aws_s3_bucket", "b", {"versioning": {"enabled": True}, "tags": {"a": "b"}})
        text = render_resource(record, block_keys={"versioning"})
        assert "  versioning {" in text
        assert "  tags = {" in text
        plain = render_resource(record)
        assert "  versioning = {" in plain

    def test_block_keys_turn_dict_lists_into_blocks(self):
        record = ResourceRecord("aws_dynamodb_table", "t", {"attribute": [{"name": "id"}, {"name": "sk"}]})
        text = render_resource(record, block_keys={"attribute"})
        assert text.count("  attribute {") == 2

    def test_string_references_in_user_config(self):
        record = ResourceRecord(
            "aws_instance", "web", {"subnet_id": "aws_subnet.main.id", "ami": "ami-123", "note": 'say "hi"'}
        )
        text = render_resource(record)
        assert "  subnet_id = aws_subnet.main.id" in text
        assert '  ami = "ami-123"' in text
        assert '  note = "say \\"hi\\""' in text

    def test_unrenderable_value_warns_but_renders(self):
        def on_event():
            return None

        warnings = []
        record = ResourceRecord("aws_lambda_function", "fn", {"handler": on_event, "runtime": "python3.11"})
        text = render_resource(record, warnings=warnings)
        lines = text.splitlines()
        handler_line = next(i for i, line in enumerate(lines) if line.startswith("  handler = "))
        assert lines[handler_line - 1].startswith("  # WARNING: aws_lambda_function.fn.handler")
        assert '  runtime = "python3.11"' in text
        assert len(warnings) == 1
        assert "on_event" in lines[handler_line]

    def test_non_finite_float_warns(self):
        warnings = []
        render_resource(ResourceRecord("aws_thing", "t", {"ratio": float("nan")}), warnings=warnings)
        assert warnings

    def test_invalid_attribute_name_is_sanitized(self):
        warnings = []
        record = ResourceRecord("aws_widget", "w", {"Instance Type": "big", "instance_type": "small", "ok": 1})
        lines = render_resource(record, warnings=warnings).splitlines()
        assert lines[1].startswith("  # WARNING: aws_widget.w.Instance Type: attribute name 'Instance Type'")
        assert lines[2:5] == ['  instance_type_2 = "big"', '  instance_type = "small"', "  ok = 1"]
        assert len(warnings) == 1

    def test_invalid_nested_block_key(self):
        warnings = []
        record = ResourceRecord("aws_widget", "w", {"settings": Block({"max size": 3})})
        text = render_resource(record, warnings=warnings)
        assert "    max_size = 3" in text
        assert "aws_widget.w.settings.max size" in warnings[0]

    def test_invalid_resource_type(self):
        warnings = []
        text = render_resource(ResourceRecord("My Widget", "w", {"size": 1}), warnings=warnings)
        lines = text.splitlines()
        assert lines[0].startswith("# WARNING: My Widget.w.type: resource type 'My Widget'")
        assert lines[1] == 'resource "my_widget" "w" {'
        assert len(warnings) == 1


class TestDocuments:
    def test_empty_resources_document(self):
        text = render_resources([])
        assert text.startswith(GENERATED_HEADER)
        assert "resource " not in text

    def test_resources_are_separated(self):
        records = [ResourceRecord("aws_sqs_queue", "a", {"name": "a"}), ResourceRecord("aws_sqs_queue", "b", {})]
        text = render_resources(records)
        assert 'resource "aws_sqs_queue" "a" {\n  name = "a"\n}\n\nresource "aws_sqs_queue" "b" {\n}\n' in text

    def test_variables(self):
        text = render_variables(
            [
                VariableRecord("db_password", "Database password", sensitive=True),
                VariableRecord("lambda_package", "Package", default="lambda_function.zip", has_default=True),
            ]
        )
        expected = (
            'variable "db_password" {\n  description = "Database password"\n  type = string\n  sensitive = true\n}'
        )
        assert expected in text
        assert '  default = "lambda_function.zip"' in text

    def test_empty_variables_is_header_only(self):
        text = render_variables([])
        assert "variable " not in text
        assert all(line.startswith("#") for line in text.strip().splitlines())

    def test_tfvars_example(self):
        text = render_tfvars_example(
            [
                VariableRecord("db_password", "Database password", sensitive=True),
                VariableRecord("ports", "Ports", type="list(number)"),
                VariableRecord("lambda_package", "Package", default="lambda_function.zip", has_default=True),
            ]
        )
        lines = text.splitlines()
        assert lines[0] == GENERATED_HEADER
        assert 'db_password = "your-db_password"' in lines
        assert "ports = []" in lines
        assert '# lambda_package = "lambda_function.zip"' in lines
        assert lines.index("# Required") < lines.index('db_password = "your-db_password"')

    def test_tfvars_example_without_variables(self):
        text = render_tfvars_example([])
        assert all(line.startswith("#") for line in text.strip().splitlines())

    def test_outputs(self):
        text = render_outputs([OutputRecord("web_public_ip", Ref("aws_instance.web.public_ip"), "Public IP")])
        assert 'output "web_public_ip" {' in text
        assert "  value = aws_instance.web.public_ip" in text

    def test_providers(self):
        aws = get_profile("aws")
        azure = get_profile("azure")
        text = render_providers(
            [(aws, provider_settings(aws, "eu-west-1")), (azure, provider_settings(azure, "East US"))]
        )
        assert "terraform {\n  required_providers {\n    aws = {\n" in text
        assert '      source = "hashicorp/aws"' in text
        assert '      version = "~> 5.0"' in text
        assert 'provider "aws" {\n  region = "eu-west-1"\n}' in text
        assert 'provider "azurerm" {\n  features {}\n}' in text

    def test_gcp_provider_project(self):
        gcp = get_profile("gcp")
        text = render_providers([(gcp, provider_settings(gcp, "europe-west1", "acme-prod"))])
        assert 'provider "google" {\n  project = "acme-prod"\n  region = "europe-west1"\n}' in text

    def test_render_body(self):
        assert render_body({"a": 1, "b": None}) == "  a = 1"
