"""
Service identity stamped on every log line.

Combines the service name, deploy environment and a short instance id so
logs from several API replicas can be told apart.
"""

from functools import lru_cache
import os
import socket


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'ticketing-api')
    deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')

    # Containers get a random hostname; locally the pid is more useful
    instance = os.getenv('HOSTNAME') or socket.gethostname()
    if deploy_env == 'local_dev' or not instance:
        instance = str(os.getpid())

    return f'{service_name}@{deploy_env}:{instance[:12]}'
