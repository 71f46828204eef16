"""
Explicit wrappers for AI vendor clients.

Use these when auto-instrumentation is not an option. Each ``wrap_*``
function patches a client instance in place and returns it.
"""

from .anthropic import wrap_anthropic
from .mistral import wrap_mistral
from .openai import wrap_openai

__all__ = [
    "wrap_openai",
    "wrap_anthropic",
    "wrap_mistral",
    "PaidLangChainCallback",
]


def __getattr__(name):
    # langchain-core is an optional extra; import it only when asked for.
    if name == "PaidLangChainCallback":
        from .langchain import PaidLangChainCallback

        return PaidLangChainCallback
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
