from fastapi import APIRouter, Depends

from backend.core import config
from backend.services.metrics_cache import (
    ACTIVE_USERS_KEY,
    MetricsCache,
    generate_active_users,
    get_metrics_cache,
)

router = APIRouter(prefix='/metrics', tags=['metrics'])


@router.get('/active-users')
def read_active_users(cache: MetricsCache = Depends(get_metrics_cache)):
    cached = cache.get_with_expiry(ACTIVE_USERS_KEY)
    if cached:
        value, expires_in_seconds = cached
        return {'value': value, 'expires_in_seconds': expires_in_seconds}

    value = generate_active_users(config.ACTIVE_USERS_MIN, config.ACTIVE_USERS_MAX)
    cache.set(ACTIVE_USERS_KEY, value, config.ACTIVE_USERS_TTL_SECONDS)
    return {'value': value, 'expires_in_seconds': config.ACTIVE_USERS_TTL_SECONDS}
