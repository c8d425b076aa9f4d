# gateway_manager.py

import logging
import threading
import time
from typing import Callable, Dict, List, Optional, Tuple

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from config import Settings, get_settings

logger = logging.getLogger(__name__)


class GatewayOperationError(Exception):
    """A long-running API Gateway operation failed or did not finish in time"""


def error_message(error: Exception) -> str:
    """Human readable message for a failed Google API call"""
    if isinstance(error, HttpError):
        reason = getattr(error, 'reason', None)
        if reason:
            return str(reason)
    return str(error) or error.__class__.__name__


def api_name(project_id: str, gateway_id: str) -> str:
    return f"projects/{project_id}/locations/global/apis/{gateway_id}"


def api_config_name(project_id: str, gateway_id: str) -> str:
    return f"{api_name(project_id, gateway_id)}/configs/{gateway_id}-config"


def gateway_name(project_id: str, region: str, gateway_id: str) -> str:
    return f"projects/{project_id}/locations/{region}/gateways/{gateway_id}"


class ApiGatewayManager:
    """
    Google API Gateway resource manager

    Creates the API → API config → Gateway chain. Each step needs the
    name produced by the previous one, so the calls run strictly in order.

    httplib2 is not thread-safe, so unless a service is injected every
    worker thread builds its own discovery client.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        service=None,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.settings = settings or get_settings()
        self._service = service
        self._local = threading.local()
        self._sleep = sleep

    @property
    def service(self):
        """apigateway v1 discovery client for the calling thread (Application Default Credentials)"""
        if self._service is not None:
            return self._service

        service = getattr(self._local, 'service', None)
        if service is None:
            logger.info(f"🔧 Building apigateway v1 client for {threading.current_thread().name}")
            service = build('apigateway', 'v1', cache_discovery=False)
            self._local.service = service
        return service

    # ===== 建立資源 =====

    def create_api(self, project_id: str, gateway_id: str) -> Dict:
        parent = f"projects/{project_id}/locations/global"
        return self.service.projects().locations().apis().create(
            parent=parent,
            apiId=gateway_id,
            body={'displayName': f"{gateway_id}-display"}
        ).execute()

    def create_api_config(self, api: str, gateway_id: str, openapi_spec_url: str) -> Dict:
        config_id = f"{gateway_id}-config"
        return self.service.projects().locations().apis().configs().create(
            parent=api,
            apiConfigId=config_id,
            body={
                'displayName': f"{gateway_id}-display",
                'openapiDocuments': [
                    {'document': {'path': openapi_spec_url}}
                ]
            }
        ).execute()

    def create_gateway(self, project_id: str, region: str, gateway_id: str, api_config: str) -> Dict:
        parent = f"projects/{project_id}/locations/{region}"
        return self.service.projects().locations().gateways().create(
            parent=parent,
            gatewayId=gateway_id,
            body={
                'apiConfig': api_config,
                'displayName': f"{gateway_id}-display"
            }
        ).execute()

    def delete_api(self, name: str) -> Dict:
        return self.service.projects().locations().apis().delete(name=name).execute()

    def delete_api_config(self, name: str) -> Dict:
        return self.service.projects().locations().apis().configs().delete(name=name).execute()

    # ===== 長時間運行的 operation =====

    def wait_for_operation(self, operation: Dict) -> Dict:
        """
        Poll a long-running operation until it is done

        Args:
            operation: Operation resource returned by a create call

        Returns:
            The finished operation

        Raises:
            GatewayOperationError: the operation reported an error or the
                GATEWAY_OPERATION_TIMEOUT_SECONDS bound was reached
        """
        name = operation.get('name', '')
        deadline = time.monotonic() + self.settings.gateway_operation_timeout_seconds

        while not operation.get('done'):
            if time.monotonic() >= deadline:
                raise GatewayOperationError(f"Timed out waiting for operation {name}")
            self._sleep(self.settings.gateway_poll_interval_seconds)
            operation = self.service.projects().locations().operations().get(
                name=name
            ).execute()

        if operation.get('error'):
            error = operation['error']
            raise GatewayOperationError(error.get('message') or f"Operation {name} failed")

        return operation

    def _accept(self, operation: Dict) -> Dict:
        if self.settings.gateway_wait_for_operations:
            return self.wait_for_operation(operation)
        return operation

    # ===== 工具入口 =====

    def create_api_gateway(
        self,
        project_id: str,
        gateway_id: str,
        region: str,
        openapi_spec_url: str
    ) -> Dict:
        """
        Create an API Gateway (API → API config → Gateway)

        Returns:
            {'status': 'success', 'api': ..., 'api_config': ..., 'gateway': ..., 'state': ...}
            or {'status': 'error', 'message': ...}

        Without GATEWAY_WAIT_FOR_OPERATIONS the success result only means
        the create calls were accepted, not that the resources are ready.
        """
        api = api_name(project_id, gateway_id)
        config = api_config_name(project_id, gateway_id)
        gateway = gateway_name(project_id, region, gateway_id)

        # (description, undo) pairs for the steps that already succeeded
        compensations: List[Tuple[str, Callable[[], Dict]]] = []

        try:
            logger.info(f"🔧 [1/3] Creating API {api}")
            self._accept(self.create_api(project_id, gateway_id))
            compensations.append((api, lambda: self.delete_api(api)))

            logger.info(f"🔧 [2/3] Creating API config {config}")
            self._accept(self.create_api_config(api, gateway_id, openapi_spec_url))
            compensations.append((config, lambda: self.delete_api_config(config)))

            logger.info(f"🔧 [3/3] Creating gateway {gateway}")
            self._accept(self.create_gateway(project_id, region, gateway_id, config))

        except Exception as e:
            message = error_message(e)
            logger.error(f"❌ API Gateway creation failed: {message}")
            self._compensate(compensations)
            return {
                'status': 'error',
                'message': message
            }

        logger.info(f"✅ API Gateway accepted: {gateway}")

        return {
            'status': 'success',
            'api': api,
            'api_config': config,
            'gateway': gateway,
            'state': 'ready' if self.settings.gateway_wait_for_operations else 'accepted'
        }

    def _compensate(self, compensations: List[Tuple[str, Callable[[], Dict]]]):
        if not compensations:
            return

        if not self.settings.gateway_rollback_on_failure:
            orphaned = ', '.join(name for name, _ in compensations)
            logger.warning(f"⚠️  Resources left behind after partial failure: {orphaned}")
            return

        for name, undo in reversed(compensations):
            try:
                undo()
                logger.info(f"↩️  Rolled back {name}")
            except Exception as e:
                logger.error(f"❌ Rollback of {name} failed: {error_message(e)}")
