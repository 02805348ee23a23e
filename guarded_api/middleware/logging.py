import time
import uuid

from fastapi import Request, Response
from loguru import logger

from guarded_api.core.constants import Headers
from guarded_api.core.logger import request_id_var
from guarded_api.core.utils import get_client_ip
from guarded_api.middleware.chain import CallNext, Stage


class LoggingStage(Stage):
    """Traces every request under a short request id and logs unhandled errors."""

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        # Generate request ID for tracing
        request_id = str(uuid.uuid4())[:8]

        # Add request ID to request state and to every log line of this request
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        start_time = time.perf_counter()
        client_ip = get_client_ip(request)

        logger.trace(
            f"{request.method} {request.url.path} - "
            f"Client: {client_ip} - User-Agent: {request.headers.get('user-agent', 'unknown')}"
        )

        try:
            response = await call_next(request)

            process_time = time.perf_counter() - start_time
            logger.trace(
                f"{request.method} {request.url.path} - "
                f"Status: {response.status_code} - Time: {process_time:.3f}s"
            )

            response.headers[Headers.REQUEST_ID] = request_id

            return response

        except Exception as e:
            process_time = time.perf_counter() - start_time

            logger.error(
                f"{request.method} {request.url.path} - "
                f"Error: {str(e)} - Time: {process_time:.3f}s",
                request_query_params=str(request.query_params),
                request_path_params=request.path_params,
            )
            raise e

        finally:
            request_id_var.reset(token)
