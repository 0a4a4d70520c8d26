# app/metrics/instrumentation.py
"""
请求 / 依赖调用的观测埋点。

业务代码只依赖 `Instrumentation` 接口；关闭指标时注入 `NoopInstrumentation`，
调用点无需做任何判空。埋点本身的异常只记录日志，绝不影响控制流。
"""
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, start_http_server

from app.config.config_settings.config_schema import MetricsConfig
from app.core.logger import logger


class Instrumentation(ABC):

    @abstractmethod
    def observe_request(self, method: str, status_code: int, duration: float) -> None:
        """记录一次 HTTP 请求的状态码和耗时。"""

    @abstractmethod
    def observe_dependency(self, dependency: str, operation: str, duration: float, failed: bool) -> None:
        """记录一次外部依赖 (blob / metadata) 调用。"""

    @abstractmethod
    def count_compensation(self, outcome: str) -> None:
        """记录一次补偿删除的结果 (succeeded / failed)。"""

    @contextmanager
    def timer(self, dependency: str, operation: str) -> Iterator[None]:
        start = time.perf_counter()
        failed = False
        try:
            yield
        except BaseException:
            failed = True
            raise
        finally:
            duration = time.perf_counter() - start
            try:
                self.observe_dependency(dependency, operation, duration, failed)
            except Exception as e:
                logger.error(f"[Metrics] Failed to record {dependency}.{operation}: {e}")


class NoopInstrumentation(Instrumentation):

    def observe_request(self, method: str, status_code: int, duration: float) -> None:
        pass

    def observe_dependency(self, dependency: str, operation: str, duration: float, failed: bool) -> None:
        pass

    def count_compensation(self, outcome: str) -> None:
        pass


class PrometheusInstrumentation(Instrumentation):
    """
    基于 prometheus_client 的实现。每个实例持有独立的 registry，
    方便测试中重复创建。
    """

    def __init__(self, namespace: str = "file_service", registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()
        self.request_duration = Histogram(
            "http_request_duration_seconds",
            "Time spent processing HTTP requests",
            ["method"],
            namespace=namespace,
            registry=self.registry,
        )
        self.response_count = Counter(
            "http_responses_total",
            "HTTP responses by method and status code",
            ["method", "status"],
            namespace=namespace,
            registry=self.registry,
        )
        self.dependency_duration = Histogram(
            "dependency_call_duration_seconds",
            "Time spent calling blob / metadata stores",
            ["dependency", "operation"],
            namespace=namespace,
            registry=self.registry,
        )
        self.dependency_failures = Counter(
            "dependency_call_failures_total",
            "Failed blob / metadata store calls",
            ["dependency", "operation"],
            namespace=namespace,
            registry=self.registry,
        )
        self.compensations = Counter(
            "saga_compensations_total",
            "Compensating blob deletes issued by the upload saga",
            ["outcome"],
            namespace=namespace,
            registry=self.registry,
        )

    def observe_request(self, method: str, status_code: int, duration: float) -> None:
        method = method.lower()
        self.request_duration.labels(method=method).observe(duration)
        self.response_count.labels(method=method, status=str(status_code)).inc()

    def observe_dependency(self, dependency: str, operation: str, duration: float, failed: bool) -> None:
        self.dependency_duration.labels(dependency=dependency, operation=operation).observe(duration)
        if failed:
            self.dependency_failures.labels(dependency=dependency, operation=operation).inc()

    def count_compensation(self, outcome: str) -> None:
        self.compensations.labels(outcome=outcome).inc()


def build_instrumentation(config: MetricsConfig) -> Instrumentation:
    if not config.enabled:
        logger.info("[Metrics] Metrics disabled, using no-op instrumentation.")
        return NoopInstrumentation()

    instrumentation = PrometheusInstrumentation(namespace=config.namespace)
    if config.exporter_port:
        start_http_server(config.exporter_port, registry=instrumentation.registry)
        logger.info(f"[Metrics] Prometheus exporter listening on :{config.exporter_port}")
    return instrumentation
