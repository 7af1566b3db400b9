"""Tests for policy loading and the literal-string matchers."""

import pytest
from pydantic import ValidationError

from convexguard.models.rules import ForbiddenCall, Policy, RuleLevel
from convexguard.policy.config import (
    DEFAULT_POLICY_PATH,
    is_exempt_file,
    is_generated_server_module,
    is_wrapper_module,
    load_policy,
)


class TestLoadPolicy:
    def test_bundled_policy_matches_model_defaults(self):
        assert DEFAULT_POLICY_PATH.exists()
        assert load_policy() == Policy()

    def test_custom_policy(self, tmp_path):
        path = tmp_path / "policy.yaml"
        path.write_text(
            "exempt_file: src/convex/auth.js\n"
            "wrapper_names: [withUser]\n"
            "rules:\n"
            "  no-direct-query-mutation: warn\n"
            "  no-getuseridentity-in-authenticated: 'off'\n",
            encoding="utf-8",
        )
        policy = load_policy(path)
        assert policy.exempt_file == "src/convex/auth.js"
        assert policy.wrapper_names == ["withUser"]
        assert policy.level_for("no-direct-query-mutation") is RuleLevel.WARN
        assert policy.level_for("no-getuseridentity-in-authenticated") is RuleLevel.OFF

    def test_partial_policy_keeps_defaults(self, tmp_path):
        path = tmp_path / "policy.yaml"
        path.write_text("handler_property: run\n", encoding="utf-8")
        policy = load_policy(str(path))
        assert policy.handler_property == "run"
        assert policy.exempt_file == "convex/auth.ts"
        assert policy.forbidden_call == ForbiddenCall()

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "policy.yaml"
        path.write_text("# nothing here\n", encoding="utf-8")
        assert load_policy(path) == Policy()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_policy(tmp_path / "missing.yaml")

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "policy.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ValueError, match="must contain a mapping"):
            load_policy(path)

    def test_unquoted_off(self, tmp_path):
        path = tmp_path / "policy.yaml"
        path.write_text("rules:\n  no-direct-query-mutation: off\n", encoding="utf-8")
        assert load_policy(path).level_for("no-direct-query-mutation") is RuleLevel.OFF

    def test_invalid_level(self, tmp_path):
        path = tmp_path / "policy.yaml"
        path.write_text("rules:\n  no-direct-query-mutation: loud\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            load_policy(path)


class TestPolicyModel:
    def test_unlisted_rule_defaults_to_error(self):
        assert Policy(rules={}).level_for("no-direct-query-mutation") is RuleLevel.ERROR

    def test_forbidden_call_dotted(self):
        assert ForbiddenCall().dotted == "ctx.auth.getUserIdentity"


class TestExemptFile:
    @pytest.mark.parametrize(
        "filename",
        [
            "convex/auth.ts",
            "/home/dev/app/convex/auth.ts",
            "convex\\auth.ts",
            "C:\\work\\app\\convex\\auth.ts",
        ],
    )
    def test_exempt(self, filename):
        assert is_exempt_file(filename, Policy())

    @pytest.mark.parametrize(
        "filename",
        [
            "convex/notes.ts",
            "convex/auth.tsx",
            "convex/auth.js",
            "convex/auth.ts.bak",
            "lib/auth.ts",
        ],
    )
    def test_not_exempt(self, filename):
        assert not is_exempt_file(filename, Policy())

    def test_empty_suffix_disables_exemption(self):
        assert not is_exempt_file("convex/auth.ts", Policy(exempt_file=""))


class TestModuleMatchers:
    @pytest.mark.parametrize(
        "source",
        ["./_generated/server", "../_generated/server", "../../convex/_generated/server", "convex/_generated/server"],
    )
    def test_generated_server(self, source):
        assert is_generated_server_module(source, Policy())

    @pytest.mark.parametrize("source", ["convex/server", "./_generated/api", "some-other-module"])
    def test_not_generated_server(self, source):
        assert not is_generated_server_module(source, Policy())

    @pytest.mark.parametrize(
        "source",
        [
            "./auth",
            "../auth",
            "../../lib/auth",
            # substring match is broader than the exact spellings
            "./authz",
            "@acme/authkit",
            "./_generated/server",
        ],
    )
    def test_wrapper_module(self, source):
        assert is_wrapper_module(source, Policy())

    @pytest.mark.parametrize("source", ["auth", "./utils", "convex-helpers/server/customFunctions"])
    def test_not_wrapper_module(self, source):
        assert not is_wrapper_module(source, Policy())
