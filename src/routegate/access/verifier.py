"""
Route access verification.

Decides whether a user may view the route governing a path. A route's
`allow` clause either names a permission function or holds conditions
combined with AND/OR. Evaluation never raises: unknown functions, failing
functions and broken rules all deny access and are logged.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

from routegate.access.decision import AccessDecision, ConditionResult
from routegate.access.functions import PermissionFunction, PermissionFunctionRegistry
from routegate.access.rules import RuleEvaluator
from routegate.config import RouteGuardSettings
from routegate.routes.definition import AllowClause, RouteDefinition
from routegate.routes.resolver import RouteMatch

logger = logging.getLogger("routegate.access.verifier")

RouteInput = Union[RouteMatch, RouteDefinition, Mapping[str, Any], None]


def custom_function_failure(name: str) -> str:
    return f'Custom function "{name}" failed'


class AccessVerifier:
    """
    Verifies access to resolved routes.

    Args:
        functions: Permission functions available to `{"function": name}` clauses
        settings: Supplies the default deny redirect and the expression limits
    """

    def __init__(
        self,
        functions: Optional[
            Union[PermissionFunctionRegistry, Mapping[str, PermissionFunction]]
        ] = None,
        settings: Optional[RouteGuardSettings] = None,
    ):
        self._functions = PermissionFunctionRegistry.coerce(functions)
        self._settings = settings or RouteGuardSettings()
        self._rules = RuleEvaluator(limits=self._settings.expression_limits)

    @property
    def functions(self) -> PermissionFunctionRegistry:
        return self._functions

    @property
    def settings(self) -> RouteGuardSettings:
        return self._settings

    def verify(self, route: RouteInput, user: Any) -> AccessDecision:
        """
        Evaluates the route's allow clause for `user`.

        Args:
            route: The governing route (a RouteMatch, a RouteDefinition or a
                raw mapping), or None when no route is configured
            user: The signed-in user, or None

        Raises:
            RouteConfigError: Only when `route` is a raw mapping that fails
                validation
        """
        pattern: Optional[str] = None
        if isinstance(route, RouteMatch):
            pattern = route.pattern
            definition: Optional[RouteDefinition] = route.definition
        elif isinstance(route, RouteDefinition) or route is None:
            definition = route
        else:
            definition = RouteDefinition.from_dict(route)

        if definition is None or definition.allow is None:
            return AccessDecision.allow(matched_pattern=pattern)

        allow = definition.allow
        if allow.function:
            trace = [self._run_function(allow.function, user)]
            allowed = trace[0].passed
            failed = [] if allowed else [custom_function_failure(allow.function)]
        else:
            allowed, trace = self._run_conditions(allow, user)
            failed = [result.label for result in trace if not result.passed]

        redirect_to = None
        if not allowed:
            redirect_to = allow.redirect_on_deny or self._settings.login_path
            logger.debug(
                "route_access_denied",
                extra={
                    "pattern": pattern,
                    "redirect_to": redirect_to,
                    "failed": failed,
                },
            )

        return AccessDecision(
            allowed=allowed,
            redirect_to=redirect_to,
            exclude_redirect_query=allow.exclude_redirect_query,
            failed=failed,
            trace=trace,
            matched_pattern=pattern,
        )

    def _run_function(self, name: str, user: Any) -> ConditionResult:
        fn = self._functions.get(name)
        if fn is None:
            logger.warning("permission_function_not_found", extra={"function": name})
            return ConditionResult(
                label=name,
                rule=name,
                passed=False,
                error=f"Permission function not registered: {name}",
            )

        try:
            passed = bool(fn(user))
        except Exception as e:
            logger.error(
                "permission_function_failed",
                extra={"function": name, "error": str(e)},
                exc_info=True,
            )
            return ConditionResult(label=name, rule=name, passed=False, error=str(e))
        return ConditionResult(label=name, rule=name, passed=passed)

    def _run_conditions(
        self, allow: AllowClause, user: Any
    ) -> tuple[bool, list[ConditionResult]]:
        when = allow.effective_when()
        trace = []
        for condition in when.conditions:
            result = self._rules.evaluate(condition.rule, user)
            trace.append(
                ConditionResult(
                    label=condition.display_label,
                    rule=condition.rule_text,
                    passed=result.passed,
                    error=result.error,
                )
            )

        if when.operator == "AND":
            allowed = all(result.passed for result in trace)
        else:
            allowed = any(result.passed for result in trace)
        return allowed, trace


def verify_route_access(
    config: RouteInput,
    user: Any,
    functions: Optional[
        Union[PermissionFunctionRegistry, Mapping[str, PermissionFunction]]
    ] = None,
) -> AccessDecision:
    """Functional form of AccessVerifier.verify with default settings."""
    return AccessVerifier(functions=functions).verify(config, user)
