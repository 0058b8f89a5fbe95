"""Unit tests for agent_scaffold.resolver.resolve."""

from __future__ import annotations

import pytest

from agent_scaffold.errors import ValidationError
from agent_scaffold.resolver import build_manifest, new_seed, resolve

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Defaults and supplied values
# ---------------------------------------------------------------------------


class TestResolve:
    def test_all_defaults(self, mini_manifest):
        resolved = resolve(mini_manifest, {}, seed=1)

        assert resolved["project_name"] == "demo"
        assert resolved["project_slug"] == "demo"
        assert resolved["project_type"] == "Python"
        assert resolved["ai_tool"] == "Claude"
        assert resolved["author_name"] in {"Ada", "Linus", "Grace", "Barbara"}
        assert resolved["use_git"] is True
        assert resolved["include_testing"] is False
        assert resolved.seed == 1

    def test_every_declared_variable_present_in_declaration_order(self, mini_manifest):
        resolved = resolve(mini_manifest, {"project_type": "PHP"}, seed=1)
        assert list(resolved.values) == list(mini_manifest.variables)

    def test_supplied_values_win(self, mini_manifest):
        resolved = resolve(
            mini_manifest,
            {"project_name": "My Tool", "ai_tool": "Codex", "use_git": "no"},
            seed=1,
        )
        assert resolved["project_name"] == "My Tool"
        assert resolved["ai_tool"] == "Codex"
        assert resolved["use_git"] is False

    def test_computed_default_uses_supplied_dependency(self, mini_manifest):
        resolved = resolve(mini_manifest, {"project_name": "My Tool!"}, seed=1)
        assert resolved["project_slug"] == "my-tool"

    def test_supplied_value_overrides_computed_default(self, mini_manifest):
        resolved = resolve(mini_manifest, {"project_slug": "custom-slug"}, seed=1)
        assert resolved["project_slug"] == "custom-slug"

    def test_defaults_computed_in_dependency_order(self):
        manifest = build_manifest(
            {
                "email": {"default": "{{ user }}@{{ domain }}", "validator": "email"},
                "user": "ada",
                "domain": "example.com",
            },
            {},
        )
        resolved = resolve(manifest, {}, seed=0)
        assert resolved["email"] == "ada@example.com"
        assert list(resolved.values) == ["email", "user", "domain"]

    def test_templated_bool_default(self):
        manifest = build_manifest(
            {
                "lang": {"choices": ["Python", "PHP"], "default": "Python"},
                "typed": {"type": "bool", "default": "{{ lang == 'Python' }}"},
            },
            {},
        )
        assert resolve(manifest, {}, seed=0)["typed"] is True
        assert resolve(manifest, {"lang": "PHP"}, seed=0)["typed"] is False


# ---------------------------------------------------------------------------
# Validation failures
# ---------------------------------------------------------------------------


class TestValidationFailures:
    def test_value_outside_choices(self, mini_manifest):
        with pytest.raises(ValidationError) as exc_info:
            resolve(mini_manifest, {"project_type": "Rust"}, seed=1)
        assert exc_info.value.variable == "project_type"

    def test_unknown_answer_key(self, mini_manifest):
        with pytest.raises(ValidationError) as exc_info:
            resolve(mini_manifest, {"colour": "red"}, seed=1)
        assert exc_info.value.variable == "colour"

    def test_missing_value_without_default(self):
        manifest = build_manifest({"licence": {"type": "str"}}, {})
        with pytest.raises(ValidationError) as exc_info:
            resolve(manifest, {}, seed=1)
        assert exc_info.value.variable == "licence"
        assert "no default" in exc_info.value.constraint

    def test_computed_default_violating_validator(self, mini_manifest):
        with pytest.raises(ValidationError) as exc_info:
            resolve(mini_manifest, {"project_name": "!!!"}, seed=1)
        assert exc_info.value.variable == "project_slug"

    def test_partial_skips_unresolvable(self):
        manifest = build_manifest(
            {"licence": {"type": "str"}, "notice": "{{ licence }} licensed"}, {}
        )
        preview = resolve(manifest, {}, seed=1, partial=True)
        assert "licence" not in preview
        assert "notice" not in preview

    def test_partial_still_rejects_bad_supplied_values(self, mini_manifest):
        with pytest.raises(ValidationError):
            resolve(mini_manifest, {"use_git": "sometimes"}, seed=1, partial=True)


# ---------------------------------------------------------------------------
# Randomised defaults
# ---------------------------------------------------------------------------


class TestSeededDefaults:
    def test_same_seed_same_answers(self, mini_manifest):
        first = resolve(mini_manifest, {}, seed=1234)
        second = resolve(mini_manifest, {}, seed=1234)
        assert first == second

    def test_seeds_cover_the_pool(self, mini_manifest):
        drawn = {resolve(mini_manifest, {}, seed=seed)["author_name"] for seed in range(200)}
        assert drawn == {"Ada", "Linus", "Grace", "Barbara"}

    def test_unseeded_run_records_its_seed(self, mini_manifest):
        resolved = resolve(mini_manifest, {})
        replay = resolve(mini_manifest, {}, seed=resolved.seed)
        assert replay.values == resolved.values

    def test_supplied_value_skips_the_draw(self, mini_manifest):
        resolved = resolve(mini_manifest, {"author_name": "Someone Else"}, seed=5)
        assert resolved["author_name"] == "Someone Else"

    def test_new_seed_in_range(self):
        for _ in range(20):
            assert 0 <= new_seed() < 2**32

    def test_choice_default_drawn_from_random_choices(self):
        manifest = build_manifest(
            {
                "licence": {
                    "choices": ["MIT", "Apache-2.0", "GPL-3.0"],
                    "random_choices": ["MIT", "Apache-2.0"],
                }
            },
            {},
        )
        drawn = {resolve(manifest, {}, seed=seed)["licence"] for seed in range(100)}
        assert drawn == {"MIT", "Apache-2.0"}

    def test_choice_draw_is_reproducible(self):
        manifest = build_manifest({"t": {"choices": ["a", "b"], "random_choices": ["a", "b"]}}, {})
        assert resolve(manifest, {}, seed=42) == resolve(manifest, {}, seed=42)


# ---------------------------------------------------------------------------
# Computed defaults
# ---------------------------------------------------------------------------


class TestComputedDefaults:
    def test_markup_characters_not_escaped(self):
        manifest = build_manifest(
            {"project_name": "Demo", "tagline": "{{ project_name }} tools"}, {}
        )
        resolved = resolve(manifest, {"project_name": "R&D <O'Brien>"}, seed=0)
        assert resolved["tagline"] == "R&D <O'Brien> tools"

    def test_type_error_names_the_variable(self):
        manifest = build_manifest({"n": "x", "m": "{{ n + 1 }}"}, {})
        with pytest.raises(ValidationError) as exc_info:
            resolve(manifest, {}, seed=0)
        assert exc_info.value.variable == "m"
        assert "TypeError" in exc_info.value.constraint

    def test_division_by_zero_names_the_variable(self):
        manifest = build_manifest({"count": "3", "per": "{{ (count | int) // 0 }}"}, {})
        with pytest.raises(ValidationError) as exc_info:
            resolve(manifest, {}, seed=0)
        assert exc_info.value.variable == "per"
        assert "ZeroDivisionError" in exc_info.value.constraint
