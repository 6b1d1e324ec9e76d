"""
Tests for the zkgroups CLI.
"""

import json

import pytest
from click.testing import CliRunner

from zkgroups.cli.main import cli


@pytest.fixture
def runner():
    return CliRunner(env={"ZKGROUPS_LOG_LEVEL": "WARNING"})


@pytest.fixture
def invoke(runner, tmp_path):
    data_dir = str(tmp_path / "data")

    def _invoke(*args, **kwargs):
        return runner.invoke(cli, ["--data-dir", data_dir, *args], **kwargs)

    return _invoke


@pytest.fixture
def group1(invoke):
    result = invoke("group", "create", "--name", "Group1", "--tree-depth", "16", "--admin", "admin")
    assert result.exit_code == 0, result.output
    return "Group1"


def _join(invoke, commitment):
    code = invoke("invite", "create", "Group1", "--admin", "admin").output.strip()
    result = invoke("member", "add", "Group1", commitment, "--invite", code)
    assert result.exit_code == 0, result.output
    return code


class TestGroupCommands:
    """Tests for `zkgroups group`."""

    def test_create(self, group1, invoke):
        result = invoke("group", "list")
        assert "Group1: 0/65536 members" in result.output

    def test_create_duplicate(self, group1, invoke):
        result = invoke("group", "create", "--name", "Group1", "--tree-depth", "16", "--admin", "admin")
        assert result.exit_code == 1
        assert "ConflictError" in result.output

    def test_list_empty(self, invoke):
        result = invoke("group", "list")
        assert result.exit_code == 0
        assert "No groups found." in result.output

    def test_list_by_admin(self, group1, invoke):
        assert "No groups found." in invoke("group", "list", "--admin", "bob").output

    def test_show(self, group1, invoke):
        result = invoke("group", "show", "Group1")
        data = json.loads(result.output)
        assert data["name"] == "Group1"
        assert data["treeDepth"] == 16
        assert data["members"] == []
        assert int(data["root"]) > 0

    def test_show_missing(self, invoke):
        result = invoke("group", "show", "Nope")
        assert result.exit_code == 1
        assert "NotFoundError" in result.output

    def test_update_wrong_admin(self, group1, invoke):
        result = invoke("group", "update", "Group1", "--description", "x", "--admin", "bob")
        assert result.exit_code == 1
        assert "No permissions" in result.output

    def test_update(self, group1, invoke):
        result = invoke("group", "update", "Group1", "--description", "new", "--admin", "admin")
        assert result.exit_code == 0
        assert json.loads(invoke("group", "show", "Group1").output)["description"] == "new"


class TestMemberCommands:
    """Tests for `zkgroups invite` and `zkgroups member`."""

    def test_invite_show(self, group1, invoke):
        code = invoke("invite", "create", "Group1", "--admin", "admin").output.strip()
        data = json.loads(invoke("invite", "show", code).output)
        assert data == {**data, "code": code, "groupName": "Group1", "redeemed": False}

    def test_check_malformed_commitment(self, group1, invoke):
        result = invoke("member", "check", "Group1", "abc")
        assert result.exit_code == 2
        assert result.output.strip() == "false"

    def test_add_and_check(self, group1, invoke):
        _join(invoke, "123123")
        assert invoke("member", "check", "Group1", "123123").exit_code == 0

        result = invoke("member", "check", "Group1", "123122")
        assert result.exit_code == 2
        assert result.output.strip() == "false"

    def test_add_with_used_invite(self, group1, invoke):
        code = _join(invoke, "1")
        result = invoke("member", "add", "Group1", "2", "--invite", code)
        assert result.exit_code == 1
        assert "ConflictError" in result.output


class TestProofCommands:
    """Tests for `zkgroups proof`."""

    def test_generate_and_verify(self, group1, invoke, tmp_path):
        _join(invoke, "123123")
        result = invoke("proof", "generate", "Group1", "123123")
        assert result.exit_code == 0
        proof = json.loads(result.output)
        assert proof["leaf"] == "123123"
        assert proof["leafIndex"] == 0
        assert len(proof["siblings"]) == 16

        proof_file = tmp_path / "proof.json"
        proof_file.write_text(result.output)
        verified = invoke("proof", "verify", str(proof_file), "--group", "Group1")
        assert verified.exit_code == 0
        assert "valid" in verified.output

    def test_verify_tampered(self, group1, invoke):
        _join(invoke, "7")
        proof = json.loads(invoke("proof", "generate", "Group1", "7").output)
        proof["leaf"] = "8"
        result = invoke("proof", "verify", "-", input=json.dumps(proof))
        assert result.exit_code == 1
        assert "invalid" in result.output

    def test_verify_non_object_json(self, group1, invoke, tmp_path):
        proof_file = tmp_path / "proof.json"
        proof_file.write_text("[1, 2]")
        result = invoke("proof", "verify", str(proof_file))
        assert result.exit_code == 1
        assert "InvalidInputError" in result.output
        assert "expected an object" in result.output
        assert not isinstance(result.exception, AttributeError)

    def test_verify_proof_of_other_group(self, group1, invoke):
        invoke("group", "create", "--name", "Group2", "--tree-depth", "16", "--admin", "admin")
        _join(invoke, "5")
        code = invoke("invite", "create", "Group2", "--admin", "admin").output.strip()
        invoke("member", "add", "Group2", "5", "--invite", code)

        proof = invoke("proof", "generate", "Group1", "5").output
        assert invoke("proof", "verify", "-", "--group", "Group1", input=proof).exit_code == 0
        assert invoke("proof", "verify", "-", "--group", "Group2", input=proof).exit_code == 1

    def test_generate_for_non_member(self, group1, invoke):
        result = invoke("proof", "generate", "Group1", "123122")
        assert result.exit_code == 1
        assert "does not exist" in result.output


def test_unknown_log_level(tmp_path):
    runner = CliRunner(env={"ZKGROUPS_LOG_LEVEL": "LOUD"})
    result = runner.invoke(cli, ["--data-dir", str(tmp_path), "group", "list"])
    assert result.exit_code == 1
    assert "Unknown log level" in result.output


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
