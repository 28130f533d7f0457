from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from suivicolis.orders.domain.entities import StatutCommande
from suivicolis.orders.models import Commande


class DuplicateOrderNumberError(Exception):
    """La contrainte d'unicité du numéro de commande a rejeté l'insertion."""

    def __init__(self, numero_commande: str):
        super().__init__(f"Numéro de commande déjà utilisé: {numero_commande}")
        self.numero_commande = numero_commande


class AbstractOrderRepository(ABC):
    """Interface abstraite pour le repository des Commandes.

    Toutes les lectures et écritures sont filtrées par organisation, sauf
    `get_unscoped` qui sert à distinguer une commande inexistante d'une
    commande d'une autre organisation.
    """

    @abstractmethod
    async def get(self, order_id: str, organization_id: str) -> Optional[Commande]:
        raise NotImplementedError

    @abstractmethod
    async def get_unscoped(self, order_id: str) -> Optional[Commande]:
        raise NotImplementedError

    @abstractmethod
    async def list(
        self,
        organization_id: str,
        statut: Optional[StatutCommande],
        client_id: Optional[str],
        limit: int,
        offset: int,
    ) -> Tuple[List[Commande], int]:
        raise NotImplementedError

    @abstractmethod
    async def numero_exists(self, numero_commande: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def add(self, data: Dict[str, Any]) -> Commande:
        """Insère une commande. Lève DuplicateOrderNumberError si le numéro est déjà pris.

        La transaction en cours est alors annulée en entier.
        """
        raise NotImplementedError

    @abstractmethod
    async def set_qr_code(self, order_id: str, organization_id: str, qr_code: str) -> Optional[Commande]:
        """Enregistre le QR code émis et retourne la commande rechargée."""
        raise NotImplementedError

    @abstractmethod
    async def transition_status(
        self,
        order_id: str,
        organization_id: str,
        expected: StatutCommande,
        target: StatutCommande,
        values: Optional[Dict[str, Any]] = None,
    ) -> Optional[Commande]:
        """Compare-and-set atomique du statut.

        N'écrit que si le statut courant vaut encore `expected`. Retourne la
        commande à jour, ou None si une autre écriture est passée avant.
        """
        raise NotImplementedError

    @abstractmethod
    async def update_unless_remis(self, order_id: str, organization_id: str, values: Dict[str, Any]) -> Optional[Commande]:
        """Met à jour des champs tant que la commande n'est pas remise (écriture conditionnelle)."""
        raise NotImplementedError

    @abstractmethod
    async def delete_unless_remis(self, order_id: str, organization_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def statistics(self, organization_id: str, since: datetime) -> Dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    async def commit(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def rollback(self) -> None:
        raise NotImplementedError
