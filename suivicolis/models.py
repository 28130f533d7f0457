"""Import de toutes les tables pour peupler SQLModel.metadata."""
from suivicolis.clients.models import Client
from suivicolis.notifications.models import Notification
from suivicolis.orders.models import Commande
from suivicolis.organizations.models import Organization, User
from suivicolis.tarifs.models import Tarif

__all__ = ["Client", "Commande", "Notification", "Organization", "Tarif", "User"]
