"""Attribute-based access control rules.

Rules are read once at startup from the rule-definition file, a JSON (or
YAML) array of records such as::

    [
        {"subject": {"role": "admin"}, "action": "*", "target": "*", "effect": "permit"},
        {"subject": {"attributes": {"tenant": "acme"}}, "action": "lookup-one",
         "target": "urn:acme:shell:1", "effect": "permit"},
        {"subject": {"role": "*"}, "action": "deregister", "target": "urn:acme:root", "effect": "deny"}
    ]

Evaluation is deny-overrides with default deny: any matching ``deny`` rule
wins over matching ``permit`` rules, and a request matched by no rule is
denied.
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Mapping, Optional, Tuple

import jsonschema
import yaml

try:
    from yaml import CSafeLoader as SafeLoader
except ImportError:
    from yaml import SafeLoader  # type: ignore

from regauthz import config, json
from regauthz.authorization.provider import Action, AuthorizationDecision, AuthorizationRequest, Effect, Subject
from regauthz.common.exception import RuleLoadError

logger = logging.getLogger(__name__)

WILDCARD = "*"

RULES_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "ABAC rules",
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "subject": {
                "type": "object",
                "properties": {
                    "role": {"type": "string", "minLength": 1},
                    "attributes": {
                        "type": "object",
                        "minProperties": 1,
                        "additionalProperties": {"type": "string"},
                    },
                },
                "oneOf": [{"required": ["role"]}, {"required": ["attributes"]}],
                "additionalProperties": False,
            },
            "action": {"type": "string", "enum": [a.value for a in Action] + [WILDCARD]},
            "target": {"type": "string", "minLength": 1},
            "effect": {"type": "string", "enum": [e.value for e in Effect]},
        },
        "required": ["subject", "action", "target", "effect"],
        "additionalProperties": False,
    },
}


@dataclass(frozen=True)
class SubjectMatcher:
    """Matches a subject by role or by identity attributes.

    Exactly one of ``role`` and ``attributes`` is set. Role ``*`` matches any
    subject. Every attribute pair must be present in the subject attributes;
    list-valued attributes match by membership and the value ``*`` matches any
    value of a present attribute.
    """

    role: Optional[str] = None
    attributes: Mapping[str, str] = field(default_factory=dict)

    def matches(self, subject: Subject) -> bool:
        if self.role is not None:
            return self.role == WILDCARD or self.role in subject.roles

        for name, expected in self.attributes.items():
            if name not in subject.attributes:
                return False
            actual = subject.attributes[name]
            if expected == WILDCARD:
                continue
            if isinstance(actual, (list, tuple, set, frozenset)):
                if expected not in actual:
                    return False
            elif actual != expected:
                return False
        return True


@dataclass(frozen=True)
class TargetMatcher:
    target: str = WILDCARD

    def matches(self, target: Optional[str]) -> bool:
        return self.target == WILDCARD or self.target == target


@dataclass(frozen=True)
class Rule:
    subject: SubjectMatcher
    action: Optional[Action]
    target: TargetMatcher
    effect: Effect

    def matches(self, request: AuthorizationRequest) -> bool:
        if self.action is not None and self.action != request.action:
            return False
        return self.subject.matches(request.subject) and self.target.matches(request.target)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Rule":
        """Build a rule from a record already validated against ``RULES_SCHEMA``."""
        subject = data["subject"]
        return cls(
            subject=SubjectMatcher(role=subject.get("role"), attributes=dict(subject.get("attributes", {}))),
            action=None if data["action"] == WILDCARD else Action(data["action"]),
            target=TargetMatcher(data["target"]),
            effect=Effect(data["effect"]),
        )

    def __str__(self) -> str:
        if self.subject.role is not None:
            subject = f"role={self.subject.role}"
        else:
            subject = f"attributes={dict(self.subject.attributes)}"
        action = self.action.value if self.action else WILDCARD
        return f"Rule({subject}, action={action}, target={self.target.target}, effect={self.effect.value})"


class RuleSet:
    """Ordered, read-only collection of rules.

    The rules are fixed when the set is created. A rule set is only read
    after startup, so it can be shared between request threads.
    """

    def __init__(self, rules: Iterable[Rule] = ()) -> None:
        self._rules: Tuple[Rule, ...] = tuple(rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"RuleSet([{', '.join(str(r) for r in self._rules)}])"


def decide(rule_set: RuleSet, request: AuthorizationRequest) -> AuthorizationDecision:
    """Evaluate ``request`` against ``rule_set``.

    Deny-overrides: a matching deny rule wins regardless of its position.
    Otherwise a matching permit rule permits. Otherwise the request is denied.
    """
    permitted_by: Optional[int] = None
    for index, rule in enumerate(rule_set):
        if not rule.matches(request):
            continue
        if rule.effect is Effect.DENY:
            return AuthorizationDecision.deny(f"denied by rule #{index}: {rule}")
        if permitted_by is None:
            permitted_by = index

    if permitted_by is not None:
        return AuthorizationDecision.permit(f"permitted by rule #{permitted_by}")

    return AuthorizationDecision.deny("no matching rule")


def parse_rules(data: Any) -> RuleSet:
    """Build a rule set from decoded rule records.

    A single malformed record rejects the whole document.

    Raises:
        RuleLoadError: If the records do not match ``RULES_SCHEMA``
    """
    try:
        jsonschema.validate(instance=data, schema=RULES_SCHEMA)
    except jsonschema.ValidationError as error:
        msg = str(error).split("\n", 1)[0]
        raise RuleLoadError(f"Invalid rule definition: {msg}") from error

    return RuleSet(Rule.from_dict(record) for record in data)


def _read_rules_file(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        if path.endswith((".yaml", ".yml")):
            return yaml.load(f, Loader=SafeLoader)
        return json.load(f)


def load_rules(path: Optional[str] = None) -> RuleSet:
    """Load the rule set from the rule-definition file.

    If the file is missing, unreadable or malformed, the error is logged and an
    empty rule set is returned. With default-deny evaluation this denies every
    request instead of preventing the registry from starting.
    """
    if path is None:
        path = config.ABAC_RULES_PATH

    logger.info("Loading ABAC rules from %s", path)

    try:
        if not os.path.isfile(path):
            raise RuleLoadError(f"{path} does not exist")
        rule_set = parse_rules(_read_rules_file(path))
    except (OSError, ValueError, yaml.YAMLError, RuleLoadError) as e:
        logger.error("Could not load ABAC rules from %s: %s", path, e)
        logger.error("SECURITY: Using an empty rule set, all requests will be denied")
        return RuleSet()

    logger.info("Read ABAC rules: %s", rule_set)
    return rule_set


class RuleChecker(ABC):
    @abstractmethod
    def check(self, request: AuthorizationRequest) -> AuthorizationDecision:
        """Decide ``request``. Must be free of side effects."""


class PredefinedSetRuleChecker(RuleChecker):
    """Checks requests against a rule set fixed at construction."""

    def __init__(self, rule_set: RuleSet) -> None:
        self._rule_set = rule_set

    @property
    def rule_set(self) -> RuleSet:
        return self._rule_set

    def check(self, request: AuthorizationRequest) -> AuthorizationDecision:
        return decide(self._rule_set, request)

