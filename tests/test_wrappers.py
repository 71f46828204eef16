"""
Test suite for explicit vendor wrappers.

Vendor clients are replaced by small fakes exposing the same method paths
as the real SDK clients.
"""

import functools
import logging
from types import SimpleNamespace
from uuid import uuid4

import pytest
from opentelemetry.trace import StatusCode

from paid.exceptions import ConfigurationError, PreconditionFailed
from paid.tracing import run_with_context, trace
from paid.tracing.attributes import GenAIAttributes, PaidAttributes
from paid.tracing.context import TracingContext
from paid.wrappers import wrap_anthropic, wrap_mistral, wrap_openai

CTX = TracingContext(external_customer_id="cust_1", external_product_id="prod_1")


class FakeMethod:
    """Records calls and returns a canned response (or raises)."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def __call__(self, *args, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return self.response


class FakeAsyncMethod(FakeMethod):
    async def __call__(self, *args, **kwargs):
        return FakeMethod.__call__(self, *args, **kwargs)


class FakeResource:
    """Stand-in for an SDK resource; methods are instance attributes."""

    def __init__(self, **methods):
        for name, method in methods.items():
            setattr(self, name, method)


def _chat_response():
    return SimpleNamespace(
        model="gpt-4o-2024-08-06",
        usage=SimpleNamespace(
            prompt_tokens=11,
            completion_tokens=7,
            prompt_tokens_details=SimpleNamespace(cached_tokens=4),
            completion_tokens_details=SimpleNamespace(reasoning_tokens=0),
        ),
    )


def _fake_openai(method_cls=FakeMethod, chat_response=None, chat_error=None):
    return SimpleNamespace(
        chat=SimpleNamespace(completions=FakeResource(
            create=method_cls(response=chat_response or _chat_response(), error=chat_error),
        )),
        embeddings=FakeResource(create=method_cls(response=SimpleNamespace(
            model="text-embedding-3-small",
            usage=SimpleNamespace(prompt_tokens=5),
        ))),
        images=FakeResource(generate=method_cls(response=SimpleNamespace(data=[]))),
        responses=FakeResource(create=method_cls(response=SimpleNamespace(
            model="gpt-4o",
            usage=SimpleNamespace(
                input_tokens=20,
                output_tokens=30,
                input_tokens_details=SimpleNamespace(cached_tokens=2),
                output_tokens_details=SimpleNamespace(reasoning_tokens=9),
            ),
        ))),
    )


def _validated_async(response):
    """An ``async def`` hidden behind a sync argument-checking decorator."""

    async def create(**kwargs):
        return response

    @functools.wraps(create)
    def validated(*args, **kwargs):
        return create(*args, **kwargs)

    return validated


def _spans(exporter):
    return {span.name: span for span in exporter.get_finished_spans()}


class TestWrapOpenAI:
    """Test wrap_openai()."""

    def test_returns_same_client(self, span_exporter):
        client = _fake_openai()
        assert wrap_openai(client) is client

    def test_chat_completion_span(self, span_exporter):
        client = wrap_openai(_fake_openai())

        run_with_context(CTX, lambda: client.chat.completions.create(model="gpt-4o", messages=[]))

        span = _spans(span_exporter)["paid.trace.chat gpt-4o"]
        assert span.status.status_code == StatusCode.OK
        assert span.attributes[GenAIAttributes.SYSTEM] == "openai"
        assert span.attributes[GenAIAttributes.OPERATION_NAME] == "chat"
        assert span.attributes[GenAIAttributes.USAGE_INPUT_TOKENS] == 11
        assert span.attributes[GenAIAttributes.USAGE_OUTPUT_TOKENS] == 7
        assert span.attributes[GenAIAttributes.USAGE_CACHED_INPUT_TOKENS] == 4
        assert GenAIAttributes.USAGE_REASONING_OUTPUT_TOKENS not in span.attributes
        assert span.attributes[GenAIAttributes.RESPONSE_MODEL] == "gpt-4o-2024-08-06"
        assert span.attributes[PaidAttributes.EXTERNAL_CUSTOMER_ID] == "cust_1"
        assert span.attributes[PaidAttributes.EXTERNAL_AGENT_ID] == "prod_1"

    def test_embeddings_images_and_responses(self, span_exporter):
        client = wrap_openai(_fake_openai())

        def work():
            client.embeddings.create(model="text-embedding-3-small", input="hi")
            client.images.generate(prompt="a cat", n=2, size="512x512")
            client.responses.create(model="gpt-4o", input="hi")

        run_with_context(CTX, work)

        spans = _spans(span_exporter)
        embeddings = spans["paid.trace.embeddings text-embedding-3-small"]
        assert embeddings.attributes[GenAIAttributes.USAGE_INPUT_TOKENS] == 5

        images = spans["paid.trace.images dall-e-3"]
        assert images.attributes[GenAIAttributes.OPERATION_NAME] == "image_generation"
        assert images.attributes[GenAIAttributes.IMAGE_COUNT] == 2
        assert images.attributes[GenAIAttributes.IMAGE_SIZE] == "512x512"
        assert images.attributes[GenAIAttributes.IMAGE_QUALITY] == "standard"

        responses = spans["paid.trace.openai.responses"]
        assert responses.attributes[GenAIAttributes.USAGE_OUTPUT_TOKENS] == 30
        assert responses.attributes[GenAIAttributes.USAGE_CACHED_INPUT_TOKENS] == 2
        assert responses.attributes[GenAIAttributes.USAGE_REASONING_OUTPUT_TOKENS] == 9

    def test_error_marks_span(self, span_exporter):
        client = wrap_openai(_fake_openai(chat_error=RuntimeError("rate limited")))

        with pytest.raises(RuntimeError, match="rate limited"):
            run_with_context(CTX, lambda: client.chat.completions.create(model="gpt-4o"))

        span = _spans(span_exporter)["paid.trace.chat gpt-4o"]
        assert span.status.status_code == StatusCode.ERROR
        assert span.events[0].name == "exception"

    def test_outside_context_passes_through(self, span_exporter, caplog):
        fake = _fake_openai()
        client = wrap_openai(fake)

        with caplog.at_level(logging.WARNING, logger="paid"):
            response = client.chat.completions.create(model="gpt-4o")

        assert response.model == "gpt-4o-2024-08-06"
        assert span_exporter.get_finished_spans() == ()
        assert "without tracing" in caplog.text

    def test_wrapping_twice_creates_one_span(self, span_exporter):
        client = wrap_openai(wrap_openai(_fake_openai()))

        run_with_context(CTX, lambda: client.chat.completions.create(model="gpt-4o"))

        assert len(span_exporter.get_finished_spans()) == 1

    def test_not_initialized(self):
        client = wrap_openai(_fake_openai())

        with pytest.raises(ConfigurationError):
            run_with_context(CTX, lambda: client.chat.completions.create(model="gpt-4o"))

    @pytest.mark.asyncio
    async def test_async_client(self, span_exporter):
        client = wrap_openai(_fake_openai(method_cls=FakeAsyncMethod))

        async def work():
            return await client.chat.completions.create(model="gpt-4o")

        response = await run_with_context(CTX, work)

        assert response.usage.prompt_tokens == 11
        span = _spans(span_exporter)["paid.trace.chat gpt-4o"]
        assert span.attributes[GenAIAttributes.USAGE_INPUT_TOKENS] == 11
        assert span.end_time is not None

    @pytest.mark.asyncio
    async def test_decorated_async_method(self, span_exporter):
        client = wrap_openai(SimpleNamespace(chat=SimpleNamespace(completions=FakeResource(
            create=_validated_async(_chat_response()),
        ))))

        async def work():
            return await client.chat.completions.create(model="gpt-4o")

        response = await run_with_context(CTX, work)

        assert response.model == "gpt-4o-2024-08-06"
        span = _spans(span_exporter)["paid.trace.chat gpt-4o"]
        assert span.attributes[GenAIAttributes.USAGE_OUTPUT_TOKENS] == 7
        assert span.status.status_code == StatusCode.OK

    def test_unawaited_async_call_leaves_no_span(self, span_exporter):
        client = wrap_openai(SimpleNamespace(chat=SimpleNamespace(completions=FakeResource(
            create=_validated_async(_chat_response()),
        ))))

        pending = run_with_context(CTX, lambda: client.chat.completions.create(model="gpt-4o"))
        pending.close()

        assert span_exporter.get_finished_spans() == ()


def _fake_anthropic(method_cls=FakeMethod, error=None):
    response = SimpleNamespace(
        model="claude-3-5-sonnet-20241022",
        usage=SimpleNamespace(
            input_tokens=100,
            output_tokens=20,
            cache_creation_input_tokens=50,
            cache_read_input_tokens=0,
        ),
    )
    return SimpleNamespace(messages=FakeResource(create=method_cls(response=response, error=error)))


class TestWrapAnthropic:
    """Test wrap_anthropic()."""

    def test_messages_span(self, span_exporter):
        client = wrap_anthropic(_fake_anthropic())

        trace(
            "cust_1",
            lambda: client.messages.create(model="claude-3-5-sonnet-latest", max_tokens=10, messages=[]),
            external_product_id="prod_1",
        )

        span = _spans(span_exporter)["paid.trace.anthropic.messages"]
        assert span.attributes[GenAIAttributes.OPERATION_NAME] == "messages"
        assert span.attributes[GenAIAttributes.REQUEST_MODEL] == "claude-3-5-sonnet-latest"
        assert span.attributes[GenAIAttributes.USAGE_INPUT_TOKENS] == 100
        assert span.attributes[GenAIAttributes.USAGE_CACHE_CREATION_INPUT_TOKENS] == 50
        assert GenAIAttributes.USAGE_CACHE_READ_INPUT_TOKENS not in span.attributes
        assert span.attributes[PaidAttributes.EXTERNAL_AGENT_ID] == "prod_1"

    def test_outside_context_raises(self, span_exporter):
        fake = _fake_anthropic()
        client = wrap_anthropic(fake)

        with pytest.raises(PreconditionFailed) as exc_info:
            client.messages.create(model="claude-3-5-sonnet-latest")

        assert exc_info.value.missing == ["external_customer_id"]
        assert fake.messages.create.__wrapped__.calls == []

    @pytest.mark.asyncio
    async def test_async_error(self, span_exporter):
        client = wrap_anthropic(_fake_anthropic(method_cls=FakeAsyncMethod, error=ValueError("overloaded")))

        async def work():
            return await client.messages.create(model="claude-3-5-sonnet-latest")

        with pytest.raises(ValueError):
            await run_with_context(CTX, work)

        span = _spans(span_exporter)["paid.trace.anthropic.messages"]
        assert span.status.status_code == StatusCode.ERROR


class TestWrapMistral:
    """Test wrap_mistral()."""

    def test_ocr_span(self, span_exporter):
        response = SimpleNamespace(model="mistral-ocr-2505", usage_info=SimpleNamespace(pages_processed=3))
        client = wrap_mistral(SimpleNamespace(ocr=FakeResource(
            process=FakeMethod(response=response),
            process_async=FakeAsyncMethod(response=response),
        )))

        run_with_context(
            CTX,
            lambda: client.ocr.process(
                model="mistral-ocr-latest",
                document={"type": "document_url", "document_url": "https://example.com/a.pdf"},
                document_annotation_format={"type": "json_schema"},
            ),
        )

        span = _spans(span_exporter)["paid.trace.mistral.ocr"]
        assert span.attributes[GenAIAttributes.OPERATION_NAME] == "ocr"
        assert span.attributes[GenAIAttributes.OCR_PAGES_PROCESSED] == 3
        assert span.attributes[GenAIAttributes.OCR_ANNOTATED] is True
        assert span.attributes[GenAIAttributes.RESPONSE_MODEL] == "mistral-ocr-2505"

    def test_outside_context_raises(self, span_exporter):
        client = wrap_mistral(SimpleNamespace(ocr=FakeResource(process=FakeMethod())))

        with pytest.raises(PreconditionFailed):
            client.ocr.process(model="mistral-ocr-latest")


class TestLangChainCallback:
    """Test PaidLangChainCallback."""

    @pytest.fixture
    def llm_result(self):
        outputs = pytest.importorskip("langchain_core.outputs")
        return outputs.LLMResult(
            generations=[[]],
            llm_output={"token_usage": {"prompt_tokens": 7, "completion_tokens": 3}, "model_name": "gpt-4o"},
        )

    def test_llm_run_span(self, span_exporter, llm_result):
        from paid.wrappers import PaidLangChainCallback

        handler = PaidLangChainCallback()
        run_id = uuid4()

        def work():
            handler.on_chat_model_start(
                {"id": ["langchain", "chat_models", "openai", "ChatOpenAI"]},
                [[]],
                run_id=run_id,
                metadata={"ls_model_type": "chat", "ls_model_name": "gpt-4o"},
            )
            handler.on_llm_end(llm_result, run_id=run_id)

        run_with_context(CTX, work)

        span = _spans(span_exporter)["paid.trace.langchain.chat"]
        assert span.attributes[GenAIAttributes.SYSTEM] == "openai"
        assert span.attributes[GenAIAttributes.REQUEST_MODEL] == "gpt-4o"
        assert span.attributes[GenAIAttributes.USAGE_INPUT_TOKENS] == 7
        assert span.attributes[GenAIAttributes.USAGE_OUTPUT_TOKENS] == 3
        assert span.attributes[GenAIAttributes.RESPONSE_MODEL] == "gpt-4o"
        assert span.attributes[PaidAttributes.EXTERNAL_CUSTOMER_ID] == "cust_1"
        assert span.status.status_code == StatusCode.OK

    def test_llm_error(self, span_exporter, llm_result):
        from paid.wrappers import PaidLangChainCallback

        handler = PaidLangChainCallback()
        run_id = uuid4()

        def work():
            handler.on_llm_start({"id": ["langchain", "llms", "anthropic"]}, ["hi"], run_id=run_id)
            handler.on_llm_error(RuntimeError("timeout"), run_id=run_id)

        run_with_context(CTX, work)

        span = _spans(span_exporter)["paid.trace.langchain.unknown"]
        assert span.attributes[GenAIAttributes.SYSTEM] == "anthropic"
        assert span.status.status_code == StatusCode.ERROR

    def test_outside_context_raises(self, span_exporter, llm_result):
        from paid.wrappers import PaidLangChainCallback

        with pytest.raises(PreconditionFailed):
            PaidLangChainCallback().on_llm_start({}, ["hi"], run_id=uuid4())

    def test_not_initialized(self, llm_result):
        from paid.wrappers import PaidLangChainCallback

        with pytest.raises(ConfigurationError):
            PaidLangChainCallback()
