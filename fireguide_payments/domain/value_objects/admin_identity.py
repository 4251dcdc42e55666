"""Value Object AdminIdentity - identidad autenticada que invoca una operación."""

from dataclasses import dataclass, field

from fireguide_payments.domain.errors import InsufficientAuthorityError

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class AdminIdentity:
    """
    Identidad ya autenticada por un colaborador externo.

    El motor no autentica: sólo verifica el contrato del rol. Cada operación
    administrativa recibe esta identidad como parámetro explícito.
    """

    admin_id: str
    roles: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return bool(self.admin_id and self.admin_id.strip()) and ADMIN_ROLE in self.roles

    @classmethod
    def admin(cls, admin_id: str) -> "AdminIdentity":
        """Factory para una identidad con rol de administrador."""
        return cls(admin_id=admin_id, roles=frozenset({ADMIN_ROLE}))


def require_admin(identity: AdminIdentity | None, operation: str) -> AdminIdentity:
    """Exige una identidad con rol admin o lanza InsufficientAuthorityError."""
    if identity is None or not identity.is_admin:
        raise InsufficientAuthorityError(
            actor_id=identity.admin_id if identity else None,
            operation=operation,
        )
    return identity
