"""Rule registry for managing review rules."""

import copy
import threading
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..exceptions import DuplicateRuleIdError, RuleNotFoundError
from ..models.review import Category, Severity
from .base import Rule
from .best_practice import (
    CodeDuplicationRule,
    ErrorHandlingRule,
    ResourceManagementRule,
    SecurityBestPracticeRule,
)
from .complexity import CognitiveComplexityRule, MethodChainingRule, ParameterCountRule
from .maintainability import DeepNestingRule, HighComplexityRule, LongFunctionRule
from .performance import LargeObjectRule, MemoryLeakRule, NPlusOneQueryRule, StringConcatenationRule
from .readability import CommentQualityRule, InconsistentNamingRule, LongLineRule, MagicNumberRule
from .security import InsecureRandomRule, NoHardcodedSecretsRule, SqlInjectionRule, XssRule


class RuleSet:
    """
    Immutable effective rule set taken from a registry.

    Holds clones of the rules that were enabled when the snapshot was
    taken, so later registry writes never reach a running review.
    """

    def __init__(self, rules: Tuple[Rule, ...]):
        self._rules = rules
        self._by_id = {rule.id: rule for rule in rules}

    def for_language(self, language: str) -> List[Rule]:
        """Rules applicable to language, in registration order."""
        return [rule for rule in self._rules if rule.applies_to(language)]

    def get(self, rule_id: str) -> Optional[Rule]:
        return self._by_id.get(rule_id)

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __repr__(self) -> str:
        return f"<RuleSet: {len(self._rules)} rules>"


class RuleRegistry:
    """
    Registry for review rules.

    The single source of truth for which rules run for which language.
    Mutation happens during setup (container build, team standards
    overlay); reviews read through snapshot().
    """

    def __init__(self):
        """Initialize empty rule registry."""
        self._rules: Dict[str, Rule] = {}
        self._lock = threading.RLock()

    @classmethod
    def create_default(cls) -> "RuleRegistry":
        """Create a registry with every built-in rule loaded."""
        registry = cls()
        registry.load_builtin_rules()
        return registry

    def register(self, rule: Rule) -> None:
        """
        Register a rule.

        Args:
            rule: Rule instance to register

        Raises:
            DuplicateRuleIdError: If a rule with the same id is registered
        """
        with self._lock:
            if rule.id in self._rules:
                raise DuplicateRuleIdError(f"Rule '{rule.id}' is already registered")
            self._rules[rule.id] = rule

    def unregister(self, rule_id: str) -> None:
        """
        Remove a rule.

        Raises:
            RuleNotFoundError: If no rule has this id
        """
        with self._lock:
            if rule_id not in self._rules:
                raise RuleNotFoundError(f"Rule '{rule_id}' is not registered")
            del self._rules[rule_id]

    def get_rule(self, rule_id: str) -> Optional[Rule]:
        """
        Get a rule by id.

        Args:
            rule_id: Rule identifier

        Returns:
            Rule or None if not found
        """
        with self._lock:
            return self._rules.get(rule_id)

    def get_all_rules(self) -> List[Rule]:
        with self._lock:
            return list(self._rules.values())

    def get_enabled_rules(self) -> List[Rule]:
        with self._lock:
            return [rule for rule in self._rules.values() if rule.enabled]

    def get_rules_for_language(self, language: str) -> List[Rule]:
        """
        Get enabled rules that apply to a language.

        Rules without a language list are universal.
        """
        return [rule for rule in self.get_enabled_rules() if rule.applies_to(language)]

    def get_rules_by_category(self, category: Category) -> List[Rule]:
        with self._lock:
            return [rule for rule in self._rules.values() if rule.category == Category(category)]

    def get_rules_by_severity(self, severity: Severity) -> List[Rule]:
        with self._lock:
            return [rule for rule in self._rules.values() if rule.severity == Severity(severity)]

    def enable(self, rule_id: str) -> None:
        """Enable a rule; unknown ids are ignored."""
        with self._lock:
            rule = self._rules.get(rule_id)
            if rule is not None:
                rule.enabled = True

    def disable(self, rule_id: str) -> None:
        """Disable a rule; unknown ids are ignored."""
        with self._lock:
            rule = self._rules.get(rule_id)
            if rule is not None:
                rule.enabled = False

    def update_rule_config(self, rule_id: str, config: Dict[str, Any]) -> None:
        """
        Shallow-merge config into a rule's existing config.

        Args:
            rule_id: Rule identifier
            config: Keys to overwrite; unmentioned keys are kept

        Raises:
            RuleNotFoundError: If no rule has this id
        """
        with self._lock:
            rule = self._rules.get(rule_id)
            if rule is None:
                raise RuleNotFoundError(f"Rule '{rule_id}' is not registered")
            merged = dict(rule.config)
            merged.update(copy.deepcopy(config))
            rule.config = merged

    def snapshot(self) -> RuleSet:
        """Freeze the currently enabled rules into a RuleSet."""
        with self._lock:
            return RuleSet(tuple(rule.clone() for rule in self._rules.values() if rule.enabled))

    def get_rule_stats(self) -> Dict[str, Any]:
        """
        Summarize the registry.

        Returns:
            Dictionary with total, enabled, disabled and per-category,
            per-severity and per-language counts. Universal rules are
            counted under "all".
        """
        by_category: Dict[str, int] = {}
        by_severity: Dict[str, int] = {}
        by_language: Dict[str, int] = {}
        rules = self.get_all_rules()
        for rule in rules:
            by_category[rule.category.value] = by_category.get(rule.category.value, 0) + 1
            by_severity[rule.severity.value] = by_severity.get(rule.severity.value, 0) + 1
            for language in rule.languages or ("all",):
                by_language[language] = by_language.get(language, 0) + 1

        enabled = sum(1 for rule in rules if rule.enabled)
        return {
            "total": len(rules),
            "enabled": enabled,
            "disabled": len(rules) - enabled,
            "by_category": by_category,
            "by_severity": by_severity,
            "by_language": by_language,
        }

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "rules": [rule.to_dict() for rule in self.get_all_rules()],
            "stats": self.get_rule_stats(),
        }

    def load_builtin_rules(self) -> None:
        """
        Load all built-in rules.

        This method registers every rule shipped with codereview.
        """
        # Security
        self.register(NoHardcodedSecretsRule())
        self.register(SqlInjectionRule())
        self.register(XssRule())
        self.register(InsecureRandomRule())
        self.register(SecurityBestPracticeRule())

        # Performance
        self.register(NPlusOneQueryRule())
        self.register(MemoryLeakRule())
        self.register(LargeObjectRule())
        self.register(StringConcatenationRule())

        # Maintainability
        self.register(LongFunctionRule())
        self.register(HighComplexityRule())
        self.register(DeepNestingRule())

        # Complexity
        self.register(CognitiveComplexityRule())
        self.register(MethodChainingRule())
        self.register(ParameterCountRule())

        # Best practice
        self.register(CodeDuplicationRule())
        self.register(ErrorHandlingRule())
        self.register(ResourceManagementRule())

        # Readability
        self.register(LongLineRule())
        self.register(MagicNumberRule())
        self.register(InconsistentNamingRule())
        self.register(CommentQualityRule())

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: str) -> bool:
        return rule_id in self._rules

    def __repr__(self) -> str:
        """String representation."""
        return f"<RuleRegistry: {len(self._rules)} rules registered>"
