"""Génération des numéros de commande lisibles.

Deux formats:
- principal : SN-<AAMMJJ>-<6 chiffres horaires>-<4 caractères aléatoires>
- client    : SN-<3 initiales>-<4 derniers chiffres du téléphone>-<4 chiffres horaires>

Chaque candidat est vérifié contre la base; la contrainte d'unicité de la
colonne reste l'arbitre final lors de l'insertion.
"""
import logging
import random
import re
import unicodedata
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from suivicolis.core.exceptions import OrderNumberGenerationError
from suivicolis.orders.config import ORDER_NUMBER_PREFIX, RANDOM_SUFFIX_ALPHABET, RANDOM_SUFFIX_LENGTH

logger = logging.getLogger(__name__)

ExistsCheck = Callable[[str], Awaitable[bool]]
Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def client_initials(nom: str) -> str:
    """'Awa Ndiaye Diop' -> 'AND'. Complété par des X si le nom est court."""
    ascii_name = unicodedata.normalize("NFKD", nom or "").encode("ascii", "ignore").decode("ascii")
    initials = "".join(word[0] for word in re.findall(r"[A-Za-z]+", ascii_name.upper()))
    return (initials + "XXX")[:3]


def phone_suffix(telephone: str) -> str:
    digits = re.sub(r"\D", "", telephone or "")
    return digits[-4:].zfill(4)


class OrderNumberGenerator:

    def __init__(
        self,
        exists: ExistsCheck,
        max_attempts: int = 5,
        clock: Clock = _utcnow,
        rng: Optional[random.Random] = None,
    ):
        self.exists = exists
        self.max_attempts = max_attempts
        self.clock = clock
        self.rng = rng or random.SystemRandom()

    def primary_candidate(self) -> str:
        now = self.clock()
        date_part = now.strftime("%y%m%d")
        time_part = f"{_millis(now) % 1_000_000:06d}"
        random_part = "".join(self.rng.choice(RANDOM_SUFFIX_ALPHABET) for _ in range(RANDOM_SUFFIX_LENGTH))
        return f"{ORDER_NUMBER_PREFIX}-{date_part}-{time_part}-{random_part}"

    def client_candidate(self, nom: str, telephone: str, attempt: int = 0) -> str:
        # Un nouvel essai décale la composante horaire pour produire un autre candidat
        time_part = f"{(_millis(self.clock()) + attempt) % 10_000:04d}"
        return f"{ORDER_NUMBER_PREFIX}-{client_initials(nom)}-{phone_suffix(telephone)}-{time_part}"

    async def generate(self) -> str:
        """Numéro au format principal, vérifié unique. Nombre d'essais borné."""
        for attempt in range(1, self.max_attempts + 1):
            candidate = self.primary_candidate()
            if not await self.exists(candidate):
                return candidate
            logger.warning(f"Collision de numéro de commande '{candidate}' (essai {attempt}/{self.max_attempts}).")
        raise OrderNumberGenerationError(self.max_attempts)

    async def generate_for_client(self, nom: str, telephone: str) -> str:
        """Numéro dérivé du client; repli sur le format principal si tous les candidats sont pris."""
        for attempt in range(self.max_attempts):
            candidate = self.client_candidate(nom, telephone, attempt)
            if not await self.exists(candidate):
                return candidate
            logger.debug(f"Numéro client '{candidate}' déjà pris, nouvel essai.")
        logger.info("Numérotation client épuisée, repli sur le format principal.")
        return await self.generate()
