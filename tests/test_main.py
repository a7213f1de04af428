"""
End-to-end tests: argument file in, one JSON envelope out.
"""

import json
import os
import shutil
from unittest.mock import patch

import pytest

from tsam.backends.inmem import InmemBackend
from tsam.main import main

FIXTURES = os.path.join(os.path.dirname(__file__), "fixtures")


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    InmemBackend.reset()
    yield
    InmemBackend.reset()


@pytest.fixture
def infra(tmp_path):
    """A Terraform configuration using a local backend over the legacy fixture state."""
    infra_dir = tmp_path / "infra"
    infra_dir.mkdir()
    shutil.copy(os.path.join(FIXTURES, "legacy.tfstate"), infra_dir / "prod.tfstate")
    (infra_dir / "main.tf").write_text(
        'terraform {\n  backend "local" {\n    path = "prod.tfstate"\n  }\n}\n'
    )
    return infra_dir


@pytest.fixture
def run_tsam(tmp_path, capsys):
    """Write an argument file, run main() and return (exit code, envelope, raw line)."""
    def _run(arguments):
        args_file = tmp_path / "args.json"
        args_file.write_text(json.dumps(arguments))
        exit_code = main(["tsam", str(args_file)])
        out = capsys.readouterr().out
        assert out.endswith("\n") and out.count("\n") == 1
        return exit_code, json.loads(out), out.strip()
    return _run


def _args(infra, retrieves, **extra):
    return dict(terraform_config_path=str(infra / "main.tf"), retrieves=retrieves, **extra)


def test_happy_path(infra, run_tsam):
    code, envelope, _ = run_tsam(_args(infra, [
        {"retrieve": "o/bucket_backups"},
        {"retrieve": "r/aws_s3_bucket.backups/bucket_domain_name"},
    ]))
    assert code == 0
    assert envelope == {
        "msg": '{"aws_s3_bucket":{"backups":{"bucket_domain_name":'
               '"tsam.backups.s3.amazonaws.com"}},"bucket_backups":"tsam.backups"}',
        "changed": False,
    }


def test_missing_output_strict(infra, run_tsam):
    code, _, line = run_tsam(_args(infra, [{"retrieve": "o/nonexistent"}], require_all=True))
    assert code == 1
    assert line == '{"msg":"Output \'root.nonexistent\' not found.","changed":false,"failed":true}'


def test_missing_attribute_strict(infra, run_tsam):
    code, envelope, _ = run_tsam(_args(
        infra, [{"retrieve": "r/aws_s3_bucket.backups/no_such_attr"}], require_all=True
    ))
    assert code == 1
    assert envelope["msg"] == "Resource attribute 'no_such_attr' not found."
    assert envelope["failed"] is True


def test_missing_resource_lenient(infra, run_tsam):
    code, envelope, _ = run_tsam(_args(infra, [
        {"retrieve": "r/aws_s3_bucket.nope/x"},
        {"retrieve": "o/bucket_backups"},
    ]))
    assert code == 0
    assert json.loads(envelope["msg"]) == {"bucket_backups": "tsam.backups"}


def test_non_root_module(infra, run_tsam):
    code, envelope, _ = run_tsam(_args(
        infra, [{"module_path": "root.child", "retrieve": "o/greeting"}]
    ))
    assert code == 0
    assert envelope["msg"] == '{"child":{"greeting":"hi"}}'


def test_malformed_retrieve(infra, run_tsam):
    code, envelope, _ = run_tsam(_args(infra, [{"retrieve": "x/foo"}]))
    assert code == 1
    assert envelope == {
        "msg": "Unsupported retrieve format: 'x/foo'. Must start with 'o/' or 'r/'.",
        "changed": False,
        "failed": True,
    }


def test_output_types_preserved(infra, run_tsam):
    code, envelope, _ = run_tsam(_args(infra, [
        {"retrieve": "o/replica_count"},
        {"retrieve": "o/zones"},
        {"retrieve": "o/tags"},
    ]))
    assert code == 0
    assert json.loads(envelope["msg"]) == {
        "replica_count": 3,
        "tags": {"team": "platform"},
        "zones": ["eu-central-1a", "eu-central-1b"],
    }


def test_missing_workspace_is_empty(infra, run_tsam):
    code, envelope, _ = run_tsam(_args(infra, [{"retrieve": "o/bucket_backups"}], state="dev"))
    assert code == 0
    assert envelope["msg"] == "{}"


def test_current_state_format(tmp_path, run_tsam):
    infra_dir = tmp_path / "v4"
    infra_dir.mkdir()
    shutil.copy(os.path.join(FIXTURES, "current.tfstate"), infra_dir / "terraform.tfstate")
    (infra_dir / "backend.tf").write_text('terraform {\n  backend "local" {}\n}\n')

    code, envelope, _ = run_tsam({
        "terraform_config_path": str(infra_dir),
        "retrieves": [
            {"retrieve": "r/aws_s3_bucket.backups/versioning.0.enabled"},
            {"retrieve": "r/aws_instance.web.1/id", "module_path": "root.child"},
        ],
    })
    assert code == 0
    assert json.loads(envelope["msg"]) == {
        "aws_s3_bucket": {"backups": {"versioning": {"0": {"enabled": "false"}}}},
        "child": {"aws_instance": {"web": {"1": {"id": "i-0def"}}}},
    }


def test_inmem_backend(tmp_path, run_tsam):
    InmemBackend.put_state("default", {
        "version": 3,
        "modules": [{"path": ["root"], "outputs": {"foo": {"type": "string", "value": "bar"}}}],
    })
    config = tmp_path / "main.tf"
    config.write_text('terraform {\n  backend "inmem" {}\n}\n')

    code, envelope, _ = run_tsam({
        "terraform_config_path": str(config),
        "retrieves": [{"retrieve": "o/foo"}],
    })
    assert code == 0
    assert envelope["msg"] == '{"foo":"bar"}'


def test_variables_file(run_tsam):
    code, envelope, _ = run_tsam({
        "terraform_config_path": os.path.join(FIXTURES, "vars", "vars.tf"),
    })
    assert code == 0
    assert json.loads(envelope["msg"]) == {
        "images": {"default": {"us-east-1": "image-1234", "us-west-2": "image-4567"}},
        "key": {"default": "test value"},
        "zones": {"default": ["us-east-1a", "us-east-1b"]},
    }


def test_unknown_backend(tmp_path, run_tsam):
    config = tmp_path / "main.tf"
    config.write_text('terraform {\n  backend "nosuchbackend" {}\n}\n')
    code, envelope, _ = run_tsam({
        "terraform_config_path": str(config),
        "retrieves": [{"retrieve": "o/foo"}],
    })
    assert code == 1
    assert envelope["msg"] == "Unknown remote-backend type 'nosuchbackend'."


def test_missing_configuration(tmp_path, run_tsam):
    missing = str(tmp_path / "nowhere.tf")
    code, envelope, _ = run_tsam({
        "terraform_config_path": missing,
        "retrieves": [{"retrieve": "o/foo"}],
    })
    assert code == 1
    assert envelope["msg"] == f"Terraform configuration file not found at: '{missing}'."


def test_no_argument_file(capsys):
    assert main(["tsam"]) == 1
    assert capsys.readouterr().out == (
        '{"msg":"No argument file provided.","changed":false,"failed":true}\n'
    )


def test_logging_stays_off_stdout(infra, tmp_path, capsys):
    settings_dir = tmp_path / "config" / "tsam"
    settings_dir.mkdir(parents=True)
    (settings_dir / "settings.json").write_text(json.dumps({"log_level": "DEBUG"}))
    args_file = tmp_path / "args.json"
    args_file.write_text(json.dumps(_args(infra, [{"retrieve": "o/bucket_backups"}])))

    assert main(["tsam", str(args_file)]) == 0
    captured = capsys.readouterr()
    assert captured.out == '{"msg":"{\\"bucket_backups\\":\\"tsam.backups\\"}","changed":false}\n'
    assert "DEBUG" in captured.err


@pytest.mark.parametrize("backend_block,expected", [
    ('backend "s3" {\n    bucket = "b"\n    key    = 5\n  }', '"key": expected str, got int'),
    ('backend "http" {\n    address = 8080\n  }', '"address": expected str, got int'),
    ('backend "remote" {\n    organization = "o"\n    workspaces   = "prod"\n  }',
     '"workspaces": expected dict or list, got str'),
])
def test_mistyped_backend_attributes(tmp_path, run_tsam, backend_block, expected):
    config = tmp_path / "main.tf"
    config.write_text("terraform {\n  " + backend_block + "\n}\n")

    code, envelope, _ = run_tsam({
        "terraform_config_path": str(config),
        "retrieves": [{"retrieve": "o/foo"}],
    })
    assert code == 1
    assert envelope["failed"] is True
    assert envelope["msg"].startswith("Error while configuring Terraform backend: ")
    assert expected in envelope["msg"]


def test_unexpected_error_still_prints_envelope(infra, run_tsam):
    with patch("tsam.main.process_state", side_effect=RuntimeError("kaboom")):
        code, envelope, _ = run_tsam(_args(infra, [{"retrieve": "o/bucket_backups"}]))
    assert code == 1
    assert envelope == {"msg": "Unexpected error: kaboom", "changed": False, "failed": True}


def test_logging_setup_failure_prints_envelope(tmp_path, capsys):
    with patch("tsam.main.setup_logging", side_effect=PermissionError("log dir is read-only")):
        assert main(["tsam", str(tmp_path / "args.json")]) == 1
    assert capsys.readouterr().out == (
        '{"msg":"Unexpected error: log dir is read-only","changed":false,"failed":true}\n'
    )
