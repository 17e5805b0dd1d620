"""
Políticas de autorización.

Una política con nombre evalúa un requerimiento (rol o permiso) contra los
claims del usuario. Antes de cualquier política se ejecuta una lista
ordenada de reglas; la primera que decide gana. La regla de administrador
va primero, así ninguna política necesita contemplar al rol "Administrador".
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Protocol

from grimorio.schemas.auth import JwtUser

ADMIN_ROLE = "Administrador"

# Nombres de políticas
ADMIN_ONLY = "AdminOnly"
VIEW_EMPLOYEES = "RRHH.ViewEmployees"
CREATE_EMPLOYEES = "RRHH.CreateEmployees"
UPDATE_EMPLOYEES = "RRHH.UpdateEmployees"
DELETE_EMPLOYEES = "RRHH.DeleteEmployees"


class Requirement(Protocol):
    def is_met(self, user: JwtUser) -> bool:
        ...


@dataclass(frozen=True)
class RoleRequirement:
    role: str

    def is_met(self, user: JwtUser) -> bool:
        return user.has_role(self.role)


@dataclass(frozen=True)
class PermissionRequirement:
    code: str

    def is_met(self, user: JwtUser) -> bool:
        return user.has_permission(self.code)


@dataclass(frozen=True)
class Policy:
    name: str
    requirement: Requirement


class Rule(Protocol):
    def evaluate(self, user: JwtUser, policy: Policy) -> Optional[bool]:
        """`True`/`False` decide; `None` deja pasar a la siguiente regla."""
        ...


class AdminBypassRule:
    """Un usuario con rol Administrador cumple cualquier política."""

    def __init__(self, role: str = ADMIN_ROLE):
        self.role = role

    def evaluate(self, user: JwtUser, policy: Policy) -> Optional[bool]:
        if user.has_role(self.role):
            return True
        return None


class AuthorizationEvaluator:
    def __init__(self, policies: Iterable[Policy], rules: Optional[List[Rule]] = None):
        self._policies: Dict[str, Policy] = {p.name: p for p in policies}
        self._rules: List[Rule] = list(rules) if rules is not None else [AdminBypassRule()]

    def get_policy(self, name: str) -> Policy:
        # Un nombre desconocido es un error de programación (KeyError)
        return self._policies[name]

    def is_authorized(self, user: JwtUser, policy_name: str) -> bool:
        policy = self.get_policy(policy_name)
        for rule in self._rules:
            decision = rule.evaluate(user, policy)
            if decision is not None:
                return decision
        return policy.requirement.is_met(user)


DEFAULT_POLICIES = [
    Policy(ADMIN_ONLY, RoleRequirement(ADMIN_ROLE)),
    Policy(VIEW_EMPLOYEES, PermissionRequirement(VIEW_EMPLOYEES)),
    Policy(CREATE_EMPLOYEES, PermissionRequirement(CREATE_EMPLOYEES)),
    Policy(UPDATE_EMPLOYEES, PermissionRequirement(UPDATE_EMPLOYEES)),
    Policy(DELETE_EMPLOYEES, PermissionRequirement(DELETE_EMPLOYEES)),
]

evaluator = AuthorizationEvaluator(DEFAULT_POLICIES)
