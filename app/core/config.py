from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # Configurações básicas do projeto
    PROJECT_NAME: str = "API PDV Pizzaria"
    PROJECT_VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    # Configurações de banco de dados
    DATABASE_URL: str = "sqlite+aiosqlite:///./pdv.db"

    # Configurações opcionais (com valores padrão)
    ENVIRONMENT: str = "development"
    SUPPORT_EMAIL: str = "support@example.com"
    LOG_LEVEL: str = "INFO"

    # Feed de alterações entre instâncias (Redis pub/sub)
    REDIS_ENABLED: bool = False
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_CHANNEL_PREFIX: str = "pdv"

    # Tempo de permanência em cada status (0 = sem espera, avança imediatamente)
    DURACAO_PENDENTE_SEGUNDOS: int = 300
    DURACAO_EM_PREPARO_SEGUNDOS: int = 600
    DURACAO_PRONTO_SEGUNDOS: int = 300
    DURACAO_SAIU_PARA_ENTREGA_SEGUNDOS: int = 1800

    # Verificação periódica das transições automáticas
    INTERVALO_AUTO_PROGRESSO_SEGUNDOS: float = 5.0
    AGENDADOR_HABILITADO: bool = True
    # Diferença mínima (em pontos percentuais) para gravar o progresso no banco
    PROGRESSO_LIMIAR_PERSISTENCIA: int = 5

    LIMITE_PEDIDOS_CARGA_INICIAL: int = 100

    # Configurações de CORS
    BACKEND_CORS_ORIGINS: List[str] = []

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"  # Ignora variáveis extras não declaradas


settings = Settings()
