import logging
from typing import List, Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# Charger les variables d'environnement AVANT de définir la classe Settings
load_dotenv()


class Settings(BaseSettings):
    # --- Base de Données ---
    DATABASE_URL: str = "sqlite+aiosqlite:///./suivicolis.db"
    DB_ECHO_LOG: bool = False
    AUTO_CREATE_TABLES: bool = True  # create_all au démarrage (développement)

    # --- Application ---
    API_V1_PREFIX: str = "/api/v1"
    APP_PUBLIC_URL: str = "http://localhost:3000"  # Base du lien public de retrait
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]
    CURRENCY: str = "XOF"

    # --- Pagination ---
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # --- JWT ---
    JWT_SECRET_KEY: str = "remplacer_par_une_vraie_cle_secrete_forte"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12

    # --- Abonnement ---
    TRIAL_DURATION_DAYS: int = 30

    # --- Numérotation des commandes ---
    ORDER_NUMBER_MAX_ATTEMPTS: int = 5

    # --- Notifications ---
    USE_MOCK_NOTIFICATIONS: bool = True
    AFRIKSMS_BASE_URL: str = "https://api.afriksms.com/api/web/web_v1/outbounds/send"
    AFRIKSMS_CLIENT_ID: Optional[str] = None
    AFRIKSMS_API_KEY: Optional[str] = None
    AFRIKSMS_SENDER_ID: Optional[str] = None
    AFRIKSMS_TIMEOUT_SECONDS: float = 10.0

    # --- SMTP (optionnel, canal email) ---
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SENDER_EMAIL: Optional[str] = None
    SENDER_PASSWORD: Optional[str] = None

    # --- Messages Génériques ---
    INTERNAL_ERROR_MSG: str = "Erreur interne du serveur."

    class Config:
        env_file = ".env"
        env_file_encoding = 'utf-8'
        extra = 'ignore'

    @property
    def notifications_mocked(self) -> bool:
        """Le mock est forcé tant que la clé AfrikSMS n'est pas fournie."""
        return self.USE_MOCK_NOTIFICATIONS or not self.AFRIKSMS_API_KEY

    @property
    def smtp_configured(self) -> bool:
        return all([self.SMTP_HOST, self.SENDER_EMAIL, self.SENDER_PASSWORD])


settings = Settings()

if settings.JWT_SECRET_KEY == "remplacer_par_une_vraie_cle_secrete_forte":
    logger.warning("La variable JWT_SECRET_KEY utilise la valeur par défaut. Veuillez définir une clé secrète forte.")

logger.info(
    f"Configuration chargée: DB={settings.DATABASE_URL.split('@')[-1]}, "
    f"notifications={'mock' if settings.notifications_mocked else 'afriksms'}"
)
