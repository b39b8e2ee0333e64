from dataclasses import dataclass

from src.cms.core.cache import CacheService
from src.cms.core.services import DbSessionService, RedisService


@dataclass
class ApplicationDependencies:
    database_service: DbSessionService
    redis_service: RedisService
    cache_service: CacheService
