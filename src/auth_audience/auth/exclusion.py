"""Route exclusion rules (legacy middleware mode).

An excluded route does not *require* a credential: a request without one
passes through unauthenticated. A credential that is present is still
verified and attached on success; on failure the request still passes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence, Union

from auth_audience.errors import ConfigurationError
from auth_audience.observability import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ExclusionRule:
    """A path pattern, optionally restricted to a set of HTTP methods.

    Attributes:
        pattern: Regular expression searched in the request path.
        methods: Upper-case methods the rule applies to; None means all.
    """

    pattern: re.Pattern[str]
    methods: frozenset[str] | None = None

    @classmethod
    def of(cls, rule: RuleSpec) -> ExclusionRule:
        """Build a rule from a pattern or ``{"pattern": ..., "methods": [...]}``.

        ``"method"`` is accepted as an alias of ``"methods"`` and may be a
        single string.

        Raises:
            ConfigurationError: If the mapping has no pattern or the regex is invalid.
        """
        if isinstance(rule, ExclusionRule):
            return rule
        methods: Iterable[str] | str | None = None
        if isinstance(rule, Mapping):
            pattern = rule.get("pattern")
            methods = rule.get("methods", rule.get("method"))
            if pattern is None:
                raise ConfigurationError("exclusions", "rule has no pattern", {"rule": str(rule)})
        else:
            pattern = rule
        try:
            compiled = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern)
        except re.error as e:
            raise ConfigurationError("exclusions", f"invalid pattern: {e}") from e
        if isinstance(methods, str):
            methods = [methods]
        method_set = frozenset(m.upper() for m in methods) if methods is not None else None
        return cls(pattern=compiled, methods=method_set)

    def matches(self, path: str, method: str) -> bool:
        if self.methods is not None and method.upper() not in self.methods:
            return False
        return self.pattern.search(path) is not None


RuleSpec = Union[str, "re.Pattern[str]", Mapping[str, object], ExclusionRule]


def compile_rules(rules: Iterable[RuleSpec] | None) -> tuple[ExclusionRule, ...]:
    """Compile configured rules once, preserving their order."""
    return tuple(ExclusionRule.of(rule) for rule in rules or ())


def strip_request_path(target: str, base_path_strip: int = 0) -> str:
    """Drop the query string and the first ``base_path_strip`` characters.

    Example:
        >>> strip_request_path("/?q=1")
        '/'
        >>> strip_request_path("/api/v1/users?page=2", base_path_strip=7)
        '/users'
    """
    path = target.split("?", 1)[0]
    if base_path_strip:
        path = path[base_path_strip:] or "/"
    return path


def find_exclusion(
    rules: Sequence[ExclusionRule], path: str, method: str
) -> ExclusionRule | None:
    """Return the first rule (in order) matching path and method, if any."""
    for rule in rules:
        if rule.matches(path, method):
            return rule
    return None


def is_excluded(
    rules: Sequence[ExclusionRule],
    target: str,
    method: str,
    base_path_strip: int = 0,
) -> bool:
    """Return True if the request is excluded from mandatory authentication.

    Args:
        rules: Compiled rules, evaluated in order.
        target: Request path, optionally with a query string.
        method: HTTP method.
        base_path_strip: Number of leading characters to strip from the path.
    """
    path = strip_request_path(target, base_path_strip)
    rule = find_exclusion(rules, path, method)
    if rule is None:
        return False
    logger.debug("auth_audience.exclusion.matched", path=path, method=method, pattern=rule.pattern.pattern)
    return True


__all__ = [
    "ExclusionRule",
    "RuleSpec",
    "compile_rules",
    "find_exclusion",
    "is_excluded",
    "strip_request_path",
]
