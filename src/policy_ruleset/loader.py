"""Policy file loading with Pydantic v2 validation.

Two document shapes are supported.

A *policy file* is the classic oslo.policy format: a YAML (or JSON, which
YAML accepts as well) mapping of rule name to rule text::

    admin_required: "role:admin"
    cloud_admin: "rule:admin_required and domain_id:admin_domain_id"
    owner: "user_id:%(user_id)s"

A *policy config* groups several policy files and inline rules::

    version: "1"
    policy_files:
      - base.yaml
      - overrides.yaml
    rules:
      admin_required: "role:admin or role:cloud_admin"

Files are read once; there is no file watching.  To reload, build a new
:class:`~policy_ruleset.rules.ruleset.RuleSet` and swap it in.

Example
-------
>>> loader = PolicyLoader()
>>> config = loader.load_config(Path("policy-config.yaml"))
>>> ruleset = loader.build_ruleset(config, base_dir=Path("."))
"""
from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, TypeAdapter

from policy_ruleset.rules.ruleset import RuleSet

logger = logging.getLogger(__name__)

_RULE_MAPPING: TypeAdapter[dict[str, str]] = TypeAdapter(dict[str, str])


class PolicyConfig(BaseModel):
    """Top-level policy configuration schema.

    All sections are optional.  Inline ``rules`` override rules of the same
    name coming from ``policy_files``.
    """

    model_config = {"extra": "allow"}

    version: str = Field(default="1")
    policy_files: list[Path] = Field(default_factory=list)
    rules: dict[str, str] = Field(default_factory=dict)


class PolicyLoader:
    """Loads policy files and configs and builds rule sets from them."""

    # ------------------------------------------------------------------
    # Policy files
    # ------------------------------------------------------------------

    def load_policy_file(self, path: str | Path) -> dict[str, str]:
        """Read a policy file into a ``name -> rule text`` mapping.

        Parameters
        ----------
        path:
            Path to a YAML or JSON policy file.

        Raises
        ------
        FileNotFoundError
            When the file does not exist.
        ValueError
            When the document is not a mapping of strings to strings.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Policy file not found: {path}")

        rules = self.load_policy_string(path.read_text(encoding="utf-8"))
        logger.info("Loaded %d rules from %s", len(rules), path)
        return rules

    def load_policy_string(self, content: str) -> dict[str, str]:
        """Parse policy file content; an empty document yields no rules."""
        raw = _safe_load(content)
        if raw is None:
            return {}
        return _RULE_MAPPING.validate_python(raw)

    # ------------------------------------------------------------------
    # Configs
    # ------------------------------------------------------------------

    def load_config(self, path: str | Path) -> PolicyConfig:
        """Load and validate a policy config file.

        Raises
        ------
        FileNotFoundError
            When the file does not exist.
        ValueError
            When the content fails Pydantic validation.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Policy config not found: {path}")
        return self.load_config_string(path.read_text(encoding="utf-8"))

    def load_config_string(self, content: str) -> PolicyConfig:
        raw = _safe_load(content) or {}
        return PolicyConfig.model_validate(raw)

    # ------------------------------------------------------------------
    # Rule sets
    # ------------------------------------------------------------------

    def build_ruleset(self, config: PolicyConfig, base_dir: Path | None = None) -> RuleSet:
        """Build a new :class:`RuleSet` from ``config``.

        Parameters
        ----------
        config:
            The validated policy config.
        base_dir:
            Directory that relative ``policy_files`` entries are resolved
            against.  Defaults to the current working directory.

        Raises
        ------
        ParseError
            When any rule fails to parse.
        """
        ruleset = RuleSet()
        for policy_file in config.policy_files:
            if base_dir is not None and not policy_file.is_absolute():
                policy_file = base_dir / policy_file
            ruleset.add_rules(self.load_policy_file(policy_file))
        ruleset.add_rules(config.rules)
        return ruleset

    def build_ruleset_from_file(self, path: str | Path) -> RuleSet:
        """Build a new :class:`RuleSet` from a single policy file."""
        ruleset = RuleSet()
        ruleset.add_rules(self.load_policy_file(path))
        return ruleset


def _safe_load(content: str) -> object:
    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ValueError(f"Malformed policy document: {exc}") from exc
