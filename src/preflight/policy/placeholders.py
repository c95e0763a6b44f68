"""
Placeholder substitution for baseline templates.

All functions here return new objects and never touch their input, so a
baseline template can be resolved any number of times for any number of
clusters.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from preflight.policy.document import Condition, PolicyDocument, Statement

CLUSTER_NAME_PLACEHOLDER = "${CLUSTER_NAME}"
ACCOUNT_ID_PLACEHOLDER = "${ACCOUNT_ID}"
OIDC_ID_PLACEHOLDER = "${OIDC_ID}"
PROJECT_ID_PLACEHOLDER = "${PROJECT_ID}"


@dataclass(frozen=True)
class PlaceholderContext:
    """Runtime values substituted into baseline templates."""

    cluster_name: str = ""
    account_id: str = ""
    oidc_id: str = ""
    project_id: str = ""

    def substitutions(self) -> dict[str, str]:
        """Get placeholder -> value pairs."""
        return {
            CLUSTER_NAME_PLACEHOLDER: self.cluster_name,
            ACCOUNT_ID_PLACEHOLDER: self.account_id,
            OIDC_ID_PLACEHOLDER: self.oidc_id,
            PROJECT_ID_PLACEHOLDER: self.project_id,
        }


def resolve_string(template: str, context: PlaceholderContext) -> str:
    """Replace every known placeholder occurring in ``template``."""
    for placeholder, value in context.substitutions().items():
        template = template.replace(placeholder, value)
    return template


def _resolve_value(
    value: str | tuple[str, ...], context: PlaceholderContext
) -> str | tuple[str, ...]:
    if isinstance(value, tuple):
        return tuple(resolve_string(v, context) for v in value)
    return resolve_string(value, context)


def resolve_map(
    mapping: dict[str, str | tuple[str, ...]] | None, context: PlaceholderContext
) -> dict[str, str | tuple[str, ...]] | None:
    """Resolve both keys and values of a condition operator map."""
    if mapping is None:
        return None
    return {
        resolve_string(key, context): _resolve_value(value, context)
        for key, value in mapping.items()
    }


def _resolve_actions(
    actions: tuple[str, ...] | None, context: PlaceholderContext
) -> tuple[str, ...] | None:
    if actions is None:
        return None
    return tuple(resolve_string(a, context) for a in actions)


def resolve_statement(statement: Statement, context: PlaceholderContext) -> Statement:
    """
    Resolve placeholders in the scalar values of a statement.

    Sid and Effect are structural and left as they are.
    """
    principal = statement.principal
    if principal is not None and principal.federated is not None:
        principal = replace(
            principal, federated=resolve_string(principal.federated, context)
        )

    condition = statement.condition
    if condition is not None:
        condition = Condition(
            string_equals=resolve_map(condition.string_equals, context),
            string_like=resolve_map(condition.string_like, context),
        )

    return replace(
        statement,
        action=_resolve_actions(statement.action, context),
        not_action=_resolve_actions(statement.not_action, context),
        principal=principal,
        resource=(
            _resolve_value(statement.resource, context)
            if statement.resource is not None
            else None
        ),
        condition=condition,
    )


def resolve_document(
    document: PolicyDocument, context: PlaceholderContext
) -> PolicyDocument:
    """Resolve placeholders in every statement of a document."""
    return replace(
        document,
        statements=tuple(resolve_statement(s, context) for s in document.statements),
    )
