"""
Service context for log records.

Identifies which service instance wrote a line so logs from several
replicas can be told apart once aggregated.
"""

import os
from functools import lru_cache


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'cancellation-service')
    deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')
    instance_id = os.getenv('INSTANCE_ID') or str(os.getpid())
    return f'{service_name}@{deploy_env}:{instance_id}'
