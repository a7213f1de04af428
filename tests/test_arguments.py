"""
Tests for argument file loading and validation.
"""

import json

import pytest

from tsam.core.arguments import ModuleArgs, Retrieve, load_arguments, validate_module_args
from tsam.core.errors import ArgumentError, LookupFormatError
from tsam.core.lookup import LookupKind


@pytest.fixture
def write_args(tmp_path):
    """Write an argument file and return its path."""
    def _write(content):
        path = tmp_path / "args.json"
        if isinstance(content, str):
            path.write_text(content)
        else:
            path.write_text(json.dumps(content))
        return str(path)
    return _write


class TestLoadArguments:

    def test_full_arguments(self, write_args):
        path = write_args({
            "terraform_config_path": "/infra/main.tf",
            "state": "staging",
            "require_all": True,
            "retrieves": [
                {"retrieve": "o/foo"},
                {"retrieve": "r/aws_s3_bucket.b/arn", "module_path": "root.child"},
            ],
        })
        args = load_arguments(["tsam", path])

        assert args.terraform_config_path == "/infra/main.tf"
        assert args.state == "staging"
        assert args.require_all is True
        assert [r.retrieve for r in args.retrieves] == ["o/foo", "r/aws_s3_bucket.b/arn"]
        assert args.retrieves[1].module_path == "root.child"
        assert args.retrieves[1].lookup.kind is LookupKind.RESOURCE_ATTR

    def test_defaults_applied(self, write_args):
        path = write_args({
            "terraform_config_path": "/infra/main.tf",
            "retrieves": [{"retrieve": "o/foo"}, {"retrieve": "o/bar", "module_path": ""}],
        })
        args = load_arguments(["tsam", path])

        assert args.state == "default"
        assert args.require_all is False
        assert all(r.module_path == "root" for r in args.retrieves)

    def test_empty_state_means_default(self, write_args):
        path = write_args({
            "terraform_config_path": "/infra/main.tf",
            "state": "",
            "retrieves": [{"retrieve": "o/foo"}],
        })
        assert load_arguments(["tsam", path]).state == "default"

    def test_unknown_fields_ignored(self, write_args):
        path = write_args({
            "terraform_config_path": "/infra/main.tf",
            "retrieves": [{"retrieve": "o/foo"}],
            "_ansible_check_mode": False,
        })
        assert load_arguments(["tsam", path]).retrieves[0].retrieve == "o/foo"

    def test_legacy_field_name(self, write_args):
        path = write_args({
            "terraform_file_path": "/infra/main.tf",
            "retrieves": [{"retrieve": "o/foo"}],
        })
        assert load_arguments(["tsam", path]).terraform_config_path == "/infra/main.tf"

    @pytest.mark.parametrize("argv", [["tsam"], ["tsam", "a.json", "b.json"]])
    def test_wrong_argument_count(self, argv):
        with pytest.raises(ArgumentError) as exc:
            load_arguments(argv)
        assert str(exc.value) == "No argument file provided."

    def test_unreadable_file(self, tmp_path):
        missing = str(tmp_path / "missing.json")
        with pytest.raises(ArgumentError) as exc:
            load_arguments(["tsam", missing])
        message = str(exc.value)
        assert message.startswith(f"Could not read configuration file: '{missing}'. Reason: '")
        assert message.endswith("'.")

    def test_invalid_json(self, write_args):
        path = write_args("{not json")
        with pytest.raises(ArgumentError) as exc:
            load_arguments(["tsam", path])
        assert str(exc.value).startswith(f"Configuration file not valid JSON: '{path}'. Reason: '")

    @pytest.mark.parametrize("content", [
        [1, 2, 3],
        {"terraform_config_path": 42, "retrieves": [{"retrieve": "o/foo"}]},
        {"terraform_config_path": "/x.tf", "retrieves": "o/foo"},
        {"terraform_config_path": "/x.tf", "retrieves": ["o/foo"]},
        {"terraform_config_path": "/x.tf", "require_all": "yes", "retrieves": [{"retrieve": "o/foo"}]},
    ])
    def test_wrong_field_types(self, write_args, content):
        path = write_args(content)
        with pytest.raises(ArgumentError) as exc:
            load_arguments(["tsam", path])
        assert "Configuration file not valid JSON" in str(exc.value)

    def test_missing_config_path(self, write_args):
        path = write_args({"retrieves": [{"retrieve": "o/foo"}]})
        with pytest.raises(ArgumentError) as exc:
            load_arguments(["tsam", path])
        assert str(exc.value) == (
            "Terraform configuration file not given. Missing terraform_config_path?"
        )

    @pytest.mark.parametrize("retrieves", [None, []])
    def test_nothing_to_retrieve(self, write_args, retrieves):
        content = {"terraform_config_path": "/infra/main.tf"}
        if retrieves is not None:
            content["retrieves"] = retrieves
        path = write_args(content)
        with pytest.raises(ArgumentError) as exc:
            load_arguments(["tsam", path])
        assert str(exc.value) == "Nothing to retrieve."

    def test_malformed_retrieve(self, write_args):
        path = write_args({
            "terraform_config_path": "/infra/main.tf",
            "retrieves": [{"retrieve": "o/good"}, {"retrieve": "r/only_two"}],
        })
        with pytest.raises(LookupFormatError) as exc:
            load_arguments(["tsam", path])
        assert "r/only_two" in str(exc.value)

    def test_variables_file_needs_no_retrieves(self, write_args):
        path = write_args({"terraform_config_path": "/infra/vars.tf"})
        args = load_arguments(["tsam", path])
        assert args.handles_variables is True
        assert args.retrieves == []


def test_handles_variables_by_basename():
    assert ModuleArgs("/infra/vars.tf").handles_variables is True
    assert ModuleArgs("vars.tf").handles_variables is True
    assert ModuleArgs("/infra/main.tf").handles_variables is False
    assert ModuleArgs("/infra/my_vars.tf").handles_variables is False


def test_validate_parses_lookups():
    args = ModuleArgs("/infra/main.tf", retrieves=[Retrieve("o/foo", module_path="")])
    validate_module_args(args)
    assert args.retrieves[0].lookup.name == "foo"
    assert args.retrieves[0].module_path == "root"
