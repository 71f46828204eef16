"""
Auto-instrumentation registry and bootstrap for the Paid SDK.

Each supported vendor SDK is backed by its OpenTelemetry contrib
instrumentor, applied against the Paid tracer provider so that vendor spans
pass through the attribution processors. The registry tracks per-vendor state
so repeated bootstraps never patch a library twice.
"""

import importlib
import importlib.util
import logging
import sys
import threading
from enum import Enum
from types import ModuleType
from typing import Any, Callable, Dict, List, Mapping, Optional

from opentelemetry.instrumentation.instrumentor import BaseInstrumentor
from opentelemetry.trace import TracerProvider

from ..exceptions import InstrumentationFailure
from ..tracing.tracing import get_paid_tracer_provider, initialize_tracing

logger = logging.getLogger(__name__)


class InstrumentationStatus(Enum):
    """Status of instrumentation for a vendor library."""
    NOT_AVAILABLE = "not_available"  # Library not installed
    AVAILABLE = "available"          # Library available but not instrumented
    INSTRUMENTED = "instrumented"    # Library instrumented successfully
    FAILED = "failed"                # Instrumentation failed


def _load_object(path: str) -> Any:
    """Import ``package.module:Attribute``."""
    module_name, _, attribute = path.partition(":")
    module = importlib.import_module(module_name)
    return getattr(module, attribute)


def _module_available(name: str) -> bool:
    if name in sys.modules:
        return True
    try:
        return importlib.util.find_spec(name) is not None
    except (ImportError, ValueError):
        return False


class VendorInstrumentation:
    """Configuration and state for one vendor's instrumentation."""

    def __init__(
        self,
        name: str,
        library_module: str,
        instrumentor_path: Optional[str] = None,
        instrumentor_factory: Optional[Callable[[], BaseInstrumentor]] = None,
        description: str = "",
    ):
        """
        Args:
            name: Vendor name used by ``bootstrap_instrumentation()``
            library_module: Import name of the vendor SDK (e.g. ``google.genai``)
            instrumentor_path: ``module:Class`` of the contrib instrumentor
            instrumentor_factory: Callable building the instrumentor, used
                instead of ``instrumentor_path``
            description: Human-readable description
        """
        if instrumentor_path is None and instrumentor_factory is None:
            raise ValueError("instrumentor_path or instrumentor_factory is required")

        self.name = name
        self.library_module = library_module
        self.instrumentor_path = instrumentor_path
        self.instrumentor_factory = instrumentor_factory
        self.description = description
        self.failure: Optional[InstrumentationFailure] = None
        self._failure_status = InstrumentationStatus.FAILED
        self._instrumentor: Optional[BaseInstrumentor] = None

    def is_available(self) -> bool:
        """Check if the vendor SDK is installed."""
        return _module_available(self.library_module)

    def is_instrumented(self) -> bool:
        return self._instrumentor is not None and self._instrumentor.is_instrumented_by_opentelemetry

    def get_status(self) -> InstrumentationStatus:
        """Get current instrumentation status."""
        if self.is_instrumented():
            return InstrumentationStatus.INSTRUMENTED
        if self.failure is not None:
            return self._failure_status
        if not self.is_available():
            return InstrumentationStatus.NOT_AVAILABLE
        return InstrumentationStatus.AVAILABLE

    def _create_instrumentor(self) -> BaseInstrumentor:
        if self.instrumentor_factory is not None:
            return self.instrumentor_factory()
        return _load_object(self.instrumentor_path)()

    def _fail(
        self,
        reason: str,
        status: InstrumentationStatus = InstrumentationStatus.FAILED,
    ) -> InstrumentationStatus:
        self.failure = InstrumentationFailure(self.name, reason)
        self._failure_status = status
        logger.warning(str(self.failure))
        return status

    def instrument(
        self,
        tracer_provider: TracerProvider,
        module: Optional[ModuleType] = None,
        requested: bool = False,
    ) -> InstrumentationStatus:
        """
        Instrument this vendor against ``tracer_provider``.

        Args:
            tracer_provider: Provider the vendor spans are created with
            module: Already imported vendor module; its presence proves
                the library is available
            requested: The caller asked for this vendor by name; a missing
                library is then recorded as a failure

        Returns:
            Resulting status; failures are logged and recorded, never raised
        """
        if self.is_instrumented():
            logger.debug(f"{self.name} already instrumented")
            return InstrumentationStatus.INSTRUMENTED

        if module is None and not self.is_available():
            if requested:
                return self._fail(
                    f"library '{self.library_module}' is not installed",
                    InstrumentationStatus.NOT_AVAILABLE,
                )
            self.failure = None
            logger.debug(f"{self.name} library not installed, skipping instrumentation")
            return InstrumentationStatus.NOT_AVAILABLE

        try:
            instrumentor = self._create_instrumentor()
        except ImportError as e:
            return self._fail(f"instrumentor not installed ({e})")
        except Exception as e:
            return self._fail(f"could not create instrumentor ({e})")

        try:
            instrumentor.instrument(tracer_provider=tracer_provider)
        except Exception as e:
            return self._fail(str(e))

        # BaseInstrumentor logs and returns without patching on dependency conflicts.
        if not instrumentor.is_instrumented_by_opentelemetry:
            return self._fail("instrumentor did not activate (dependency conflict?)")

        self._instrumentor = instrumentor
        self.failure = None
        logger.info(f"Successfully instrumented {self.name}")
        return InstrumentationStatus.INSTRUMENTED

    def uninstrument(self) -> bool:
        """Remove instrumentation for this vendor."""
        if not self.is_instrumented():
            logger.debug(f"{self.name} not currently instrumented")
            return True

        try:
            self._instrumentor.uninstrument()
        except Exception as e:
            logger.error(f"Error uninstrumenting {self.name}: {e}")
            return False

        self._instrumentor = None
        logger.info(f"Successfully uninstrumented {self.name}")
        return True


class InstrumentationRegistry:
    """Registry for managing auto-instrumentation of AI vendor libraries."""

    def __init__(self):
        self._libraries: Dict[str, VendorInstrumentation] = {}
        self._lock = threading.RLock()
        self._setup_default_libraries()

    def _setup_default_libraries(self):
        """Setup default vendor instrumentations."""
        self.register_library(VendorInstrumentation(
            name="openai",
            library_module="openai",
            instrumentor_path="opentelemetry.instrumentation.openai_v2:OpenAIInstrumentor",
            description="OpenAI Python library for GPT models",
        ))
        self.register_library(VendorInstrumentation(
            name="anthropic",
            library_module="anthropic",
            instrumentor_path="opentelemetry.instrumentation.anthropic:AnthropicInstrumentor",
            description="Anthropic Python library for Claude models",
        ))
        self.register_library(VendorInstrumentation(
            name="google_genai",
            library_module="google.genai",
            instrumentor_path="opentelemetry.instrumentation.google_genai:GoogleGenAiSdkInstrumentor",
            description="Google Gen AI SDK for Gemini models",
        ))
        self.register_library(VendorInstrumentation(
            name="bedrock",
            library_module="boto3",
            instrumentor_path="opentelemetry.instrumentation.bedrock:BedrockInstrumentor",
            description="AWS Bedrock runtime through boto3",
        ))
        self.register_library(VendorInstrumentation(
            name="mistral",
            library_module="mistralai",
            instrumentor_path="opentelemetry.instrumentation.mistralai:MistralAiInstrumentor",
            description="Mistral AI Python client",
        ))

    def register_library(self, library: VendorInstrumentation) -> None:
        """Register a vendor for instrumentation, replacing any previous entry."""
        with self._lock:
            self._libraries[library.name] = library
        logger.debug(f"Registered instrumentation for {library.name}")

    def unregister_library(self, name: str) -> bool:
        """Uninstrument and unregister a vendor."""
        with self._lock:
            library = self._libraries.get(name)
            if library is None:
                return False
            library.uninstrument()
            del self._libraries[name]
        logger.debug(f"Unregistered instrumentation for {name}")
        return True

    def get_library(self, name: str) -> Optional[VendorInstrumentation]:
        return self._libraries.get(name)

    def list_libraries(self) -> List[str]:
        return list(self._libraries.keys())

    def is_instrumented(self, name: str) -> bool:
        library = self._libraries.get(name)
        return library is not None and library.is_instrumented()

    def get_status(self, name: Optional[str] = None) -> Dict[str, InstrumentationStatus]:
        """Get instrumentation status for one vendor or all of them."""
        if name:
            library = self._libraries.get(name)
            if library:
                return {name: library.get_status()}
            return {}

        return {
            name: library.get_status()
            for name, library in self._libraries.items()
        }

    def get_failures(self) -> Dict[str, InstrumentationFailure]:
        """Get the recorded failure of every vendor whose last attempt failed."""
        return {
            name: library.failure
            for name, library in self._libraries.items()
            if library.failure is not None
        }

    def get_available_libraries(self) -> List[str]:
        return [
            name for name, library in self._libraries.items()
            if library.is_available()
        ]

    def get_instrumented_libraries(self) -> List[str]:
        return [
            name for name, library in self._libraries.items()
            if library.is_instrumented()
        ]

    def instrument(
        self,
        tracer_provider: TracerProvider,
        libraries: Optional[Mapping[str, Optional[ModuleType]]] = None,
    ) -> Dict[str, InstrumentationStatus]:
        """
        Instrument the given vendors (default: every registered vendor).

        Args:
            tracer_provider: Provider the vendor spans are created with
            libraries: Mapping of vendor name to its imported module

        Returns:
            Dict mapping vendor names to their resulting status
        """
        results: Dict[str, InstrumentationStatus] = {}

        with self._lock:
            if libraries is None:
                targets = {name: None for name in self._libraries}
            else:
                targets = dict(libraries)

            for name, module in targets.items():
                library = self._libraries.get(name)
                if library is None:
                    logger.warning(
                        f"Unknown library '{name}' - supported: {', '.join(self._libraries)}"
                    )
                    results[name] = InstrumentationStatus.NOT_AVAILABLE
                    continue
                results[name] = library.instrument(tracer_provider, module, requested=libraries is not None)

        instrumented = [name for name, status in results.items() if status == InstrumentationStatus.INSTRUMENTED]
        failed = [name for name, status in results.items() if status == InstrumentationStatus.FAILED]

        if instrumented:
            logger.info(f"Instrumented: {', '.join(instrumented)}")

        if failed:
            logger.warning(f"Failed to instrument: {', '.join(failed)}")

        return results

    def uninstrument_library(self, name: str) -> bool:
        """Remove instrumentation for a specific vendor."""
        library = self._libraries.get(name)
        if not library:
            logger.error(f"Library {name} not registered")
            return False

        with self._lock:
            return library.uninstrument()

    def uninstrument_all(self) -> Dict[str, bool]:
        """Remove instrumentation for all vendors."""
        with self._lock:
            return {
                name: library.uninstrument()
                for name, library in self._libraries.items()
            }

    def get_instrumentation_summary(self) -> Dict[str, Dict[str, Any]]:
        """Get comprehensive instrumentation summary."""
        summary = {}

        for name, library in self._libraries.items():
            status = library.get_status()
            summary[name] = {
                "status": status.value,
                "description": library.description,
                "library": library.library_module,
                "available": library.is_available(),
                "instrumented": library.is_instrumented(),
                "error": library.failure.reason if library.failure else None,
            }

        return summary


# Global registry instance
_registry = InstrumentationRegistry()


def get_registry() -> InstrumentationRegistry:
    """Get the global instrumentation registry."""
    return _registry


def bootstrap_instrumentation(
    libraries: Optional[Mapping[str, Optional[ModuleType]]] = None,
) -> Dict[str, InstrumentationStatus]:
    """
    Instrument installed AI vendor SDKs against the Paid tracer provider.

    Initializes tracing from the environment if needed. Safe to call
    repeatedly: vendors already instrumented are left alone, vendors that
    failed or were missing are retried.

    Args:
        libraries: Mapping of vendor name (``openai``, ``anthropic``,
            ``google_genai``, ``bedrock``, ``mistral``) to its imported module.
            Default: every supported vendor, resolved by import name.

    Returns:
        Dict mapping vendor names to their resulting status

    Examples:
        # Instrument every installed vendor SDK
        bootstrap_instrumentation()

        # Instrument only OpenAI
        import openai
        bootstrap_instrumentation({"openai": openai})
    """
    initialize_tracing()
    tracer_provider = get_paid_tracer_provider()

    if tracer_provider is None:
        logger.error(
            "Could not get tracer provider, make sure you ran initialize_tracing() "
            "or check your environment variables"
        )
        names = list(libraries) if libraries is not None else _registry.list_libraries()
        return {
            name: _registry.get_status(name).get(name, InstrumentationStatus.NOT_AVAILABLE)
            for name in names
        }

    return _registry.instrument(tracer_provider, libraries)


def is_instrumented(library: str) -> bool:
    return _registry.is_instrumented(library)


def get_status() -> Dict[str, InstrumentationStatus]:
    """Get instrumentation status for all vendors."""
    return _registry.get_status()


def uninstrument(library: str) -> bool:
    """Remove instrumentation from a specific vendor."""
    return _registry.uninstrument_library(library)


def uninstrument_all() -> Dict[str, bool]:
    """Remove instrumentation from all vendors."""
    return _registry.uninstrument_all()
